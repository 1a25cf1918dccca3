import pytest

from rediskit.streams import (
    StreamClaimOptions,
    StreamClaimReply,
    StreamId,
    StreamInfoConsumersReply,
    StreamInfoGroupsReply,
    StreamInfoStreamReply,
    StreamMaxlen,
    StreamPendingCountReply,
    StreamPendingReply,
    StreamRangeReply,
    StreamReadOptions,
    StreamReadReply,
)
from rediskit.values import ErrorKind, RedisError, to_int


def _entry(entry_id, *fields):
    return [entry_id, list(fields)]


def test_maxlen_equals_args():
    assert StreamMaxlen.equals(10).to_redis_args() == [b"MAXLEN", b"=", b"10"]


def test_maxlen_approx_args():
    assert StreamMaxlen.approx(3).to_redis_args() == [b"MAXLEN", b"~", b"3"]


def test_claim_options_empty():
    assert StreamClaimOptions().to_redis_args() == []


def test_claim_options_all():
    opts = StreamClaimOptions().idle(5).time(6).retry(7).with_force().with_justid()
    assert opts.to_redis_args() == [
        b"IDLE", b"5", b"TIME", b"6", b"RETRYCOUNT", b"7", b"FORCE", b"JUSTID",
    ]


def test_claim_options_builder_does_not_mutate():
    base = StreamClaimOptions()
    base.idle(5)
    assert base.to_redis_args() == []


def test_read_options_block_and_count():
    opts = StreamReadOptions().block(100).count(2)
    assert opts.to_redis_args() == [b"BLOCK", b"100", b"COUNT", b"2"]
    assert opts.read_only() is True


def test_read_options_noack_needs_group():
    assert StreamReadOptions().noack().to_redis_args() == []


def test_read_options_group():
    opts = StreamReadOptions().count(1).noack().group("g1", "c1")
    assert opts.read_only() is False
    assert opts.to_redis_args() == [b"COUNT", b"1", b"NOACK", b"GROUP", b"g1", b"c1"]


def test_stream_id_from_bulk_value():
    sid = StreamId.from_bulk_value(_entry(b"1-0", b"name", b"ann", b"age", b"7"))
    assert sid.id == "1-0"
    assert sid.get("name") == "ann"
    assert sid.get("age", to_int) == 7
    assert sid.contains_key("age")
    assert not sid.contains_key("other")
    assert len(sid) == 2
    assert not sid.is_empty()


def test_stream_id_get_missing_or_bad():
    sid = StreamId.from_bulk_value(_entry(b"1-0", b"name", b"ann"))
    assert sid.get("missing") is None
    assert sid.get("name", to_int) is None


def test_stream_id_from_non_list_is_empty():
    sid = StreamId.from_bulk_value(None)
    assert sid.id == ""
    assert sid.is_empty()


def test_read_reply():
    value = [
        [b"s1", [_entry(b"1-0", b"a", b"1"), _entry(b"2-0", b"b", b"2")]],
        [b"s2", [_entry(b"3-0", b"c", b"3")]],
    ]
    reply = StreamReadReply.from_redis_value(value)
    assert [k.key for k in reply.keys] == ["s1", "s2"]
    assert [i.id for i in reply.keys[0].ids] == ["1-0", "2-0"]
    assert reply.keys[1].ids[0].get("c", to_int) == 3


def test_read_reply_nil_is_empty():
    assert StreamReadReply.from_redis_value(None).keys == []


def test_range_reply():
    value = [_entry(b"1-0", b"a", b"x"), _entry(b"2-0", b"b", b"y")]
    reply = StreamRangeReply.from_redis_value(value)
    assert [i.id for i in reply.ids] == ["1-0", "2-0"]
    assert reply.ids[1].get("b") == "y"


def test_claim_reply():
    reply = StreamClaimReply.from_redis_value([_entry(b"5-1", b"k", b"v")])
    assert reply.ids[0].id == "5-1"
    assert reply.ids[0].map == {"k": b"v"}


def test_pending_reply_empty():
    reply = StreamPendingReply.from_redis_value([0, None, None, None])
    assert reply.count() == 0
    assert reply.data is None


def test_pending_reply_data():
    value = [2, b"1-0", b"2-0", [[b"alice", b"2"], [b"bob", b"garbage"]]]
    reply = StreamPendingReply.from_redis_value(value)
    assert reply.count() == 2
    assert reply.data.start_id == "1-0"
    assert reply.data.end_id == "2-0"
    assert [(c.name, c.pending) for c in reply.data.consumers] == [
        ("alice", 2),
        ("bob", 0),
    ]


def test_pending_reply_missing_start_id():
    with pytest.raises(RedisError) as info:
        StreamPendingReply.from_redis_value([1, None, b"2-0", []])
    assert info.value.kind is ErrorKind.IO_ERROR


def test_pending_count_reply():
    value = [[b"1-0", b"alice", 10, 1], [b"2-0", b"bob", 20, 3]]
    reply = StreamPendingCountReply.from_redis_value(value)
    assert [(p.id, p.consumer, p.last_delivered_ms, p.times_delivered) for p in reply.ids] == [
        ("1-0", "alice", 10, 1),
        ("2-0", "bob", 20, 3),
    ]


@pytest.mark.parametrize(
    "value, description",
    [
        (b"x", "Cannot parse redis data (1)"),
        ([b"x"], "Cannot parse redis data (2)"),
        ([[b"1-0", b"alice", b"10", 1]], "Cannot parse redis data (3)"),
        ([[b"1-0", b"alice", 10]], "Cannot parse redis data (3)"),
    ],
)
def test_pending_count_reply_errors(value, description):
    with pytest.raises(RedisError) as info:
        StreamPendingCountReply.from_redis_value(value)
    assert info.value.kind is ErrorKind.TYPE_ERROR
    assert info.value.description == description


def test_info_stream_reply():
    value = [
        b"length", 2,
        b"radix-tree-nodes", 1,
        b"groups", 1,
        b"last-generated-id", b"2-0",
        b"first-entry", _entry(b"1-0", b"a", b"1"),
        b"last-entry", _entry(b"2-0", b"b", b"2"),
    ]
    reply = StreamInfoStreamReply.from_redis_value(value)
    assert reply.length == 2
    assert reply.radix_tree_keys == 1
    assert reply.groups == 1
    assert reply.last_generated_id == "2-0"
    assert reply.first_entry.id == "1-0"
    assert reply.last_entry.get("b") == "2"


def test_info_stream_reply_empty_entries():
    reply = StreamInfoStreamReply.from_redis_value([b"length", 0, b"first-entry", None])
    assert reply.length == 0
    assert reply.first_entry.is_empty()


def test_info_consumers_reply():
    value = [[b"name", b"alice", b"pending", 1, b"idle", 50]]
    reply = StreamInfoConsumersReply.from_redis_value(value)
    assert [(c.name, c.pending, c.idle) for c in reply.consumers] == [("alice", 1, 50)]


def test_info_groups_reply():
    value = [
        [b"name", b"g1", b"consumers", 2, b"pending", 3, b"last-delivered-id", b"4-0"]
    ]
    reply = StreamInfoGroupsReply.from_redis_value(value)
    group = reply.groups[0]
    assert (group.name, group.consumers, group.pending, group.last_delivered_id) == (
        "g1", 2, 3, "4-0",
    )


def test_info_groups_reply_bad_count():
    with pytest.raises(RedisError) as info:
        StreamInfoGroupsReply.from_redis_value([[b"pending", b"many"]])
    assert info.value.kind is ErrorKind.TYPE_ERROR