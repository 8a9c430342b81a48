"""Tests for the consumer wire records."""

import json
from datetime import datetime, timezone

import pytest

from jsm import api


def test_consumer_config_as_dict():
    config = api.DEFAULT_CONSUMER.evolve(
        durable_name="orders-worker",
        deliver_policy=api.DeliverPolicy.BY_START_TIME,
        opt_start_time=datetime(2020, 3, 1, 10, 0, tzinfo=timezone.utc),
        ack_wait=1.5,
        sample_freq="50%",
    )
    result = config.as_dict()
    assert result == {
        "durable_name": "orders-worker",
        "deliver_policy": "by_start_time",
        "opt_start_time": "2020-03-01T10:00:00Z",
        "ack_policy": "explicit",
        "ack_wait": 1500000000,
        "replay_policy": "instant",
        "sample_freq": "50%",
    }
    # Must be serializable as is.
    json.dumps(result)


def test_create_request_as_dict():
    req = api.CreateConsumerRequest(
        stream_name="ORDERS", config=api.ConsumerConfig()
    )
    result = req.as_dict()
    assert result["stream_name"] == "ORDERS"
    assert result["config"]["deliver_policy"] == "all"
    assert result["config"]["ack_wait"] == 0
    assert "deliver_subject" not in result["config"]


def test_consumer_info_from_response():
    info = api.ConsumerInfo.from_response({
        "name": "orders-worker",
        "stream_name": "ORDERS",
        "created": "2020-03-01T10:00:00Z",
        "config": {
            "durable_name": "orders-worker",
            "deliver_subject": "out.orders",
            "deliver_policy": "by_start_time",
            "opt_start_time": "2020-03-01T10:00:00.123456789Z",
            "ack_policy": "all",
            "ack_wait": 30000000000,
            "replay_policy": "original",
            "max_deliver": 3,
        },
        "state": {
            "delivered": {"consumer_seq": 4, "stream_seq": 10},
            "ack_floor": {"consumer_seq": 2, "stream_seq": 8},
            "num_pending": 6,
        },
    })
    assert info.name == "orders-worker"
    assert info.stream_name == "ORDERS"

    config = info.config
    assert config.deliver_subject == "out.orders"
    assert config.deliver_policy == api.DeliverPolicy.BY_START_TIME
    assert config.opt_start_time == datetime(
        2020, 3, 1, 10, 0, 0, 123456, tzinfo=timezone.utc
    )
    assert config.ack_policy == api.AckPolicy.ALL
    assert config.ack_wait == 30
    assert config.replay_policy == api.ReplayPolicy.ORIGINAL
    assert config.max_deliver == 3

    assert info.state.delivered == api.SequencePair(consumer_seq=4, stream_seq=10)
    assert info.state.ack_floor.stream_seq == 8
    assert info.state.num_pending == 6
    assert info.state.num_redelivered is None


def test_consumer_info_without_state():
    info = api.ConsumerInfo.from_response({
        "name": "c",
        "stream_name": "S",
        "config": {},
    })
    assert info.state == api.ConsumerState()
    assert info.config == api.ConsumerConfig()


def test_response_markers():
    assert api.is_ok_response(b"+OK")
    assert not api.is_ok_response(b"-ERR 'consumer not found'")
    assert api.is_error_response(b"-ERR 'consumer not found'")
    assert not api.is_error_response(b"{}")
    assert api.error_description(b"-ERR 'consumer not found'") == "consumer not found"


def test_consumer_info_without_config():
    for resp in (
        {"name": "c", "stream_name": "S"},
        {"name": "c", "stream_name": "S", "config": None},
    ):
        info = api.ConsumerInfo.from_response(resp)
        assert info.config == api.ConsumerConfig()
        assert info.state == api.ConsumerState()


@pytest.mark.parametrize(
    "value,expected", [
        ("new", api.DeliverPolicy.NEW),
        ("last_per_subject", api.DeliverPolicy.LAST_PER_SUBJECT),
    ]
)
def test_consumer_config_reads_all_deliver_policies(value, expected):
    config = api.ConsumerConfig.from_response({"deliver_policy": value})
    assert config.deliver_policy == expected
    assert config.as_dict()["deliver_policy"] == value
