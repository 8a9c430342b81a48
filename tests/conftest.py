"""Test fixtures for jsm.

The fixtures answer consumer API requests from memory the way a
JetStream server does, so no nats-server is needed.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pytest

from jsm import api
from jsm.manager import ConsumerManager


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for all tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


@dataclass
class FakeMsg:
    subject: str
    data: bytes


class FakeSubscription:

    def __init__(self, subject: str, queue: str = "", cb=None) -> None:
        self.subject = subject
        self.queue = queue
        self.cb = cb
        self.unsubscribed = False

    async def next_msg(self, timeout: Optional[float] = 1.0) -> Any:
        return FakeMsg(self.subject, b"")

    async def unsubscribe(self, limit: int = 0) -> None:
        self.unsubscribed = True


class FakeNATS:
    """
    In memory stand-in for a connection to a JetStream enabled server.

    ``responses`` replaces the server answer for a subject; a value that is
    an exception is raised instead of answered.
    """

    def __init__(self, streams=("ORDERS", )) -> None:
        self.streams = set(streams)
        self.consumers: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.requests: List[Tuple[str, bytes, float]] = []
        self.subscriptions: List[FakeSubscription] = []
        self.responses: Dict[str, Any] = {}

    async def request(
        self, subject: str, payload: bytes = b'', timeout: float = 0.5
    ) -> FakeMsg:
        self.requests.append((subject, payload, timeout))
        if subject in self.responses:
            resp = self.responses[subject]
            if isinstance(resp, BaseException):
                raise resp
            return FakeMsg(subject, resp)

        prefix = api.DEFAULT_PREFIX
        if subject == f"{prefix}.{api.CREATE_CONSUMER}":
            return FakeMsg(subject, self._create(payload))
        if subject == f"{prefix}.{api.CONSUMER_INFO}":
            return FakeMsg(subject, self._info(payload))
        if subject == f"{prefix}.{api.DELETE_CONSUMER}":
            return FakeMsg(subject, self._delete(payload))
        if subject.startswith(f"{prefix}.{api.REQUEST_NEXT}."):
            return FakeMsg("ORDERS.received", payload)
        return FakeMsg(subject, b"-ERR 'unknown subject'")

    async def subscribe(self, subject: str, queue: str = "", cb=None):
        sub = FakeSubscription(subject, queue, cb)
        self.subscriptions.append(sub)
        return sub

    def _create(self, payload: bytes) -> bytes:
        req = json.loads(payload)
        stream = req["stream_name"]
        if stream not in self.streams:
            return b"-ERR 'stream not found'"
        config = req["config"]
        name = config.get("durable_name")
        if name:
            self.consumers[(stream, name)] = config
        return b"+OK"

    def _info(self, payload: bytes) -> bytes:
        stream, name = payload.decode().split(" ")
        config = self.consumers.get((stream, name))
        if config is None:
            return b"-ERR 'consumer not found'"
        return json.dumps({
            "name": name,
            "stream_name": stream,
            "created": "2020-03-01T10:00:00.123456789Z",
            "config": config,
            "state": {
                "delivered": {"consumer_seq": 4, "stream_seq": 10},
                "ack_floor": {"consumer_seq": 2, "stream_seq": 8},
                "num_pending": 6,
                "num_redelivered": 1,
            },
        }).encode()

    def _delete(self, payload: bytes) -> bytes:
        stream, name = payload.decode().split(" ")
        if self.consumers.pop((stream, name), None) is None:
            return b"-ERR 'consumer not found'"
        return b"+OK"


@pytest.fixture
def nc() -> FakeNATS:
    return FakeNATS()


@pytest.fixture
def manager(nc: FakeNATS) -> ConsumerManager:
    return ConsumerManager(nc, timeout=2)
