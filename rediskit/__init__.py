"""Redis protocol toolkit: reply parsing, value conversion, commands, pipelines, scripts, geo and stream helpers."""

__version__ = "0.21.5"
__all__ = ["geo", "parser", "pipeline", "script", "streams", "values"]