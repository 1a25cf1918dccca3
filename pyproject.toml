[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rediskit"
version = "0.21.5"
description = "Redis protocol toolkit: reply parsing, value conversion, command and pipeline encoding, Lua scripts, geo and stream helpers."
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "database", "resp", "protocol", "pipeline", "streams"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rediskit"]

[tool.pytest.ini_options]
addopts = "-ra"
