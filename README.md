# rediskit

A dependency-free toolkit for speaking the Redis protocol from Python. It
provides the pieces a client is built from: reply parsing, conversion of
replies into Python values, encoding of commands and pipelines, Lua script
invocation, and helpers for the geospatial and stream commands.

## Installation

```
pip install rediskit
```

## Modules

- `rediskit.values`: the reply model and conversions.
  - Replies are plain Python objects. `None` is nil, `int` is an integer
    reply, `bytes` is bulk data, `Status` is a status line, the single
    `Okay()` instance is `+OK`, and `list` is a multi-bulk reply.
  - Converters turn replies into Python values: `to_int`, `to_uint`,
    `to_float`, `to_bool`, `to_str`, `to_bytes`, `to_list`, `to_tuple`,
    `to_set`, `to_dict` and `optional`.
  - `to_redis_args` flattens Python values into byte-string command
    arguments. Strings, bytes, ints, floats, bools, mappings, iterables and
    objects with a `to_redis_args()` method are accepted. `is_single_arg`
    tells whether a value becomes exactly one argument.
  - `InfoDict` parses the reply of `INFO`.
  - Failures are raised as `RedisError`, which carries an `ErrorKind`, a
    description, an optional detail and the server `code`.
    `make_extension_error` builds the error for server codes the toolkit
    does not know.
- `rediskit.parser`: parses protocol replies.
  - `parse_redis_value(data)` parses one reply from bytes.
  - `Parser().parse_value(reader)` reads one reply from a binary stream and
    keeps any bytes read past its end for the next call.
  - `ValueCodec` decodes replies from a growing `bytearray`.
    `decode(buffer)` returns `None` until a whole reply is present.
    `decode_eof(buffer)` treats a partial reply as an error. A decoded frame
    has `.value`, `.error` and `.result()`, which raises the server error if
    there was one.
  - Server error replies are raised as `RedisError` by `parse_value` and
    `parse_redis_value`.
- `rediskit.pipeline`: `cmd`, `Cmd`, `pack_command`, `pipe`, `Pipeline` and
  the abstract `ConnectionLike` interface that they are executed through.
- `rediskit.script`: `Script` and `ScriptInvocation`.
- `rediskit.geo`: `Unit`, `Coord`, `RadiusOrder`, `RadiusOptions` and
  `RadiusSearchResult`.
- `rediskit.streams`: `StreamMaxlen`, `StreamClaimOptions` and
  `StreamReadOptions`, plus typed reply objects:
  - `StreamReadReply`, `StreamRangeReply` and `StreamClaimReply`
  - `StreamPendingReply` and `StreamPendingCountReply`
  - `StreamInfoStreamReply`, `StreamInfoConsumersReply` and
    `StreamInfoGroupsReply`

  Each reply class has a `from_redis_value` class method.

## Parsing replies

```python
from rediskit.parser import parse_redis_value
from rediskit.values import to_int, to_list

value = parse_redis_value(b"*2\r\n:1\r\n$1\r\n2\r\n")   # [1, b"2"]
numbers = to_list(value, to_int)                       # [1, 2]
```

## Building commands and pipelines

```python
from rediskit.pipeline import cmd, pipe

packed = cmd("SET").arg("my_key").arg(42).get_packed_command()

pipeline = pipe().atomic()
pipeline.cmd("SET").arg("key_1").arg(42).ignore()
pipeline.cmd("GET").arg("key_1")
wire_bytes = pipeline.get_packed_pipeline()   # wrapped in MULTI ... EXEC
```

`Pipeline` behaves as follows:

- `ignore()` drops the reply of the last command from the results.
- Calling `arg()` on an empty pipeline raises `IndexError`.
- `clear()` removes all commands and all ignore marks.

## Executing through a connection

`Cmd.query` and `Pipeline.query` take any object that implements
`ConnectionLike`. Such an object needs three methods:

- `req_packed_command(packed)` returns one reply.
- `req_packed_commands(packed, offset, count)` skips `offset` replies and
  returns the next `count` replies.
- `supports_pipelining()` returns whether several commands may be sent in
  one go. The default returns `True`.

An optional converter is applied to the result:

```python
from rediskit.values import to_int

count = cmd("INCR").arg("counter").query(con, to_int)
```

`Pipeline.query` returns the list of replies that were not ignored.

- If the connection does not support pipelining, it raises `RedisError`.
- An atomic pipeline returns `None` when `EXEC` answers nil.
- `execute(con)` runs the pipeline and discards the replies.

## Lua scripts

```python
from rediskit.script import Script
from rediskit.values import to_int

script = Script("return tonumber(ARGV[1]) + tonumber(ARGV[2])")
result = script.arg(1).arg(2).invoke(con, to_int)
```

`invoke` sends `EVALSHA` with the script's SHA1 hash (see `get_hash()`), the
number of keys, the keys and the arguments. When the server answers with a
`NOSCRIPT` error, `invoke` sends `SCRIPT LOAD` and tries again. Any other
error is raised.

## Geo and stream options

```python
from rediskit.geo import RadiusOptions, RadiusOrder
from rediskit.streams import StreamMaxlen, StreamReadOptions

RadiusOptions().order(RadiusOrder.ASC).limit(10).with_dist().to_redis_args()
# [b"WITHDIST", b"COUNT", b"10", b"ASC"]

StreamReadOptions().count(10).block(500).group("g", "c").to_redis_args()
# [b"BLOCK", b"500", b"COUNT", b"10", b"GROUP", b"g", b"c"]

StreamMaxlen.approx(1000).to_redis_args()
# [b"MAXLEN", b"~", b"1000"]
```

The option builders in `geo` and `streams` return new objects. The originals
are left unchanged.

## What it does not do

rediskit opens no sockets and has no client or connection class. It does not
parse connection URLs, and it has no connection pooling, no async interface,
no cluster support and no publish/subscribe handling. Sending bytes to a
server and reading the replies back is left to your `ConnectionLike`
implementation. Inside that implementation you can use `Parser` or
`ValueCodec` to read the replies.

## Running the tests

```
pip install -e .[test]
pytest
```