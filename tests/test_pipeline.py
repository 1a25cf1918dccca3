import pytest

from rediskit.parser import parse_redis_value
from rediskit.pipeline import ConnectionLike, Pipeline, cmd, pack_command, pipe
from rediskit.values import ErrorKind, Okay, RedisError, Status, to_int, to_list


class FakeConnection(ConnectionLike):
    def __init__(self, replies=None, pipelining=True):
        self.replies = list(replies or [])
        self.sent = []
        self.pipelining = pipelining

    def req_packed_command(self, packed):
        self.sent.append(packed)
        reply = self.replies.pop(0)
        if isinstance(reply, RedisError):
            raise reply
        return reply

    def req_packed_commands(self, packed, offset, count):
        self.sent.append(packed)
        return self.replies[offset : offset + count]

    def supports_pipelining(self):
        return self.pipelining


def test_pack_command_wire_format():
    assert pack_command([b"GET", b"key"]) == b"*2\r\n$3\r\nGET\r\n$3\r\nkey\r\n"


def test_packed_command_round_trips_through_parser():
    command = cmd("SET").arg("name").arg(42).arg(b"\x00bin")
    assert parse_redis_value(command.get_packed_command()) == [
        b"SET",
        b"name",
        b"42",
        b"\x00bin",
    ]


def test_cmd_arg_flattens_lists():
    command = cmd("MGET").arg(["a", "b"])
    assert command.args == (b"MGET", b"a", b"b")


def test_cmd_query_sends_and_converts():
    con = FakeConnection([b"7"])
    result = cmd("GET").arg("k").query(con, to_int)
    assert result == 7
    assert con.sent == [cmd("GET").arg("k").get_packed_command()]


def test_empty_pipeline_returns_empty_list_without_sending():
    con = FakeConnection()
    assert pipe().query(con) == []
    assert con.sent == []


def test_pipelined_query_drops_ignored_results():
    con = FakeConnection([Okay(), b"1"])
    p = pipe().cmd("SET").arg("a").arg(1).ignore().cmd("GET").arg("a")
    assert p.query(con) == [b"1"]
    expected = (
        cmd("SET").arg("a").arg(1).get_packed_command()
        + cmd("GET").arg("a").get_packed_command()
    )
    assert con.sent == [expected]


def test_query_applies_converter():
    con = FakeConnection([b"1", b"2"])
    p = pipe().cmd("GET").arg("x").cmd("GET").arg("y")
    assert p.query(con, lambda v: to_list(v, to_int)) == [1, 2]


def test_atomic_packed_pipeline_wraps_in_multi_exec():
    p = pipe().atomic().cmd("GET").arg("k")
    packed = p.get_packed_pipeline()
    assert packed == (
        cmd("MULTI").get_packed_command()
        + cmd("GET").arg("k").get_packed_command()
        + cmd("EXEC").get_packed_command()
    )


def test_atomic_query_uses_exec_reply():
    con = FakeConnection(
        [Okay(), Status("QUEUED"), Status("QUEUED"), [Okay(), b"1"]]
    )
    p = pipe().atomic().cmd("SET").arg("a").arg(1).ignore().cmd("GET").arg("a")
    assert p.query(con) == [b"1"]


def test_atomic_query_nil_exec_reply():
    con = FakeConnection([Okay(), Status("QUEUED"), None])
    p = pipe().atomic().cmd("GET").arg("a")
    assert p.query(con) is None


def test_atomic_query_invalid_exec_reply():
    con = FakeConnection([Okay(), Status("QUEUED"), b"junk"])
    p = pipe().atomic().cmd("GET").arg("a")
    with pytest.raises(RedisError) as info:
        p.query(con)
    assert info.value.kind is ErrorKind.RESPONSE_ERROR


def test_connection_without_pipelining_is_rejected():
    con = FakeConnection(pipelining=False)
    with pytest.raises(RedisError) as info:
        pipe().cmd("PING").query(con)
    assert info.value.kind is ErrorKind.RESPONSE_ERROR
    assert con.sent == []


def test_arg_on_empty_pipeline_raises():
    with pytest.raises(IndexError):
        Pipeline().arg("x")


def test_ignore_on_empty_pipeline_has_no_effect():
    con = FakeConnection([b"v"])
    p = pipe().ignore().cmd("GET").arg("k")
    assert p.query(con) == [b"v"]


def test_clear_removes_commands_and_ignores():
    p = pipe().cmd("SET").arg("a").arg(1).ignore()
    p.clear()
    assert list(p.cmd_iter()) == []
    con = FakeConnection([b"z"])
    assert p.cmd("GET").arg("a").query(con) == [b"z"]


def test_cmd_iter_and_add_command():
    first = cmd("PING")
    p = pipe().add_command(first).cmd("ECHO").arg("hi")
    commands = list(p.cmd_iter())
    assert commands[0] == first
    assert commands[1].args == (b"ECHO", b"hi")


def test_execute_returns_none_and_sends():
    con = FakeConnection([Status("PONG")])
    assert pipe().cmd("PING").execute(con) is None
    assert con.sent == [cmd("PING").get_packed_command()]