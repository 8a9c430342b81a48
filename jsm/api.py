# Copyright 2021 The NATS Authors
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, TypeVar

_NANOSECOND = 10**9

DEFAULT_PREFIX = "$JS.API"

# Management subjects, relative to the API prefix.
CREATE_CONSUMER = "CONSUMER.CREATE"
CONSUMER_INFO = "CONSUMER.INFO"
DELETE_CONSUMER = "CONSUMER.DELETE"
REQUEST_NEXT = "CONSUMER.MSG.NEXT"

# Sampled acknowledgements are published here by the server.
ACK_SAMPLE_PREFIX = "$JS.EVENT.METRIC.CONSUMER_ACK"

OK = "+OK"
ERR_PREFIX = "-ERR"

_FRACTION_RE = re.compile(r"\.(\d+)")


def is_ok_response(data: bytes) -> bool:
    return data.startswith(OK.encode())


def is_error_response(data: bytes) -> bool:
    return data.startswith(ERR_PREFIX.encode())


def error_description(data: bytes) -> str:
    """
    Extract the server text from an error response such as
    ``-ERR 'consumer not found'``.
    """
    text = data.decode(errors="replace")
    if text.startswith(ERR_PREFIX):
        text = text[len(ERR_PREFIX):]
    return text.strip().strip("'").strip()


_B = TypeVar("_B", bound="Base")


@dataclass
class Base:
    """
    Helper dataclass to filter unknown fields from the API.
    """

    @staticmethod
    def _convert(resp: Dict[str, Any], field: str, type: type[Base]) -> None:
        """Convert the field into the given type in place.
        """
        data = resp.get(field, None)
        if data is None:
            resp[field] = None
        else:
            resp[field] = type.from_response(data)

    @staticmethod
    def _convert_nanoseconds(resp: Dict[str, Any], field: str) -> None:
        """Convert the given field from nanoseconds to seconds in place.
        """
        val = resp.get(field, None)
        if val is not None:
            val = val / _NANOSECOND
        resp[field] = val

    @staticmethod
    def _convert_time(resp: Dict[str, Any], field: str) -> None:
        """Convert the given field from an RFC 3339 string in place.
        """
        val = resp.get(field, None)
        if val is not None:
            val = parse_time(val)
        resp[field] = val

    @staticmethod
    def _to_nanoseconds(val: Optional[float]) -> Optional[int]:
        """Convert the value from seconds to nanoseconds.
        """
        if val is None:
            # We use 0 to avoid sending null to Go servers.
            return 0
        return int(val * _NANOSECOND)

    @classmethod
    def from_response(cls: type[_B], resp: Dict[str, Any]) -> _B:
        """Read the class instance from a server response.

        Unknown fields are ignored ("open-world assumption").
        """
        params = {}
        for field in fields(cls):
            if field.name in resp:
                params[field.name] = resp[field.name]
        return cls(**params)

    def evolve(self: _B, **params) -> _B:
        """Return a copy of the instance with the passed values replaced.
        """
        return replace(self, **params)

    def as_dict(self) -> Dict[str, object]:
        """Return the object converted into an API-friendly dict.
        """
        result = {}
        for field in fields(self):
            val = getattr(self, field.name)
            if val is None:
                continue
            if isinstance(val, Base):
                val = val.as_dict()
            elif isinstance(val, Enum):
                val = val.value
            result[field.name] = val
        return result


def parse_time(val: str) -> datetime:
    """Parse an RFC 3339 timestamp as sent by the server.

    Go servers send nanosecond fractions, which are cut to microseconds.
    """
    val = val.replace("Z", "+00:00")
    val = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), val, count=1)
    ts = datetime.fromisoformat(val)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def format_time(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class AckPolicy(str, Enum):
    """Policies defining how messages should be acknowledged.

    If an ack is required but is not received within the AckWait window, the message will be redelivered.

    References:
        * `Consumers, AckPolicy <https://docs.nats.io/jetstream/concepts/consumers#ackpolicy>`_
    """

    NONE = "none"
    ALL = "all"
    EXPLICIT = "explicit"


class DeliverPolicy(str, Enum):
    """When a consumer is first created, it can specify where in the stream it wants to start receiving messages.

    This is the DeliverPolicy, and this enumeration defines allowed values.
    ``BY_START_SEQUENCE`` and ``BY_START_TIME`` take their position from
    ``opt_start_seq`` and ``opt_start_time`` respectively.
    """

    ALL = "all"
    LAST = "last"
    NEW = "new"
    BY_START_SEQUENCE = "by_start_sequence"
    BY_START_TIME = "by_start_time"
    LAST_PER_SUBJECT = "last_per_subject"


class ReplayPolicy(str, Enum):
    """The replay policy applies when the DeliverPolicy is one of:
        * all
        * by_start_sequence
        * by_start_time
    since those deliver policies begin reading the stream at a position other than the end.

    References:
        * `Consumers, ReplayPolicy <https://docs.nats.io/jetstream/concepts/consumers#replaypolicy>`_
    """

    INSTANT = "instant"
    ORIGINAL = "original"


@dataclass
class ConsumerConfig(Base):
    """Consumer configuration.

    A consumer without a ``deliver_subject`` is pull based, and one without
    a ``durable_name`` is ephemeral.

    References:
        * `Consumers <https://docs.nats.io/jetstream/concepts/consumers>`_
    """
    # Push based consumers.
    deliver_subject: Optional[str] = None
    durable_name: Optional[str] = None
    deliver_policy: DeliverPolicy = DeliverPolicy.ALL
    opt_start_seq: Optional[int] = None
    opt_start_time: Optional[datetime] = None
    ack_policy: AckPolicy = AckPolicy.EXPLICIT
    ack_wait: Optional[float] = None  # in seconds
    max_deliver: Optional[int] = None
    filter_subject: Optional[str] = None
    replay_policy: ReplayPolicy = ReplayPolicy.INSTANT
    # Percentage of acknowledgements to sample, e.g. "50%".
    sample_freq: Optional[str] = None

    @classmethod
    def from_response(cls, resp: Dict[str, Any]):
        resp = dict(resp)
        cls._convert_nanoseconds(resp, 'ack_wait')
        cls._convert_time(resp, 'opt_start_time')
        for field, enum in (
            ('deliver_policy', DeliverPolicy),
            ('ack_policy', AckPolicy),
            ('replay_policy', ReplayPolicy),
        ):
            if resp.get(field) is not None:
                resp[field] = enum(resp[field])
        return super().from_response(resp)

    def as_dict(self) -> Dict[str, object]:
        result = super().as_dict()
        result['ack_wait'] = self._to_nanoseconds(self.ack_wait)
        if self.opt_start_time is not None:
            result['opt_start_time'] = format_time(self.opt_start_time)
        return result


DEFAULT_CONSUMER = ConsumerConfig(
    deliver_policy=DeliverPolicy.ALL,
    ack_policy=AckPolicy.EXPLICIT,
    ack_wait=30,
    replay_policy=ReplayPolicy.INSTANT,
)

SAMPLED_DEFAULT_CONSUMER = DEFAULT_CONSUMER.evolve(sample_freq="100%")


@dataclass
class CreateConsumerRequest(Base):
    stream_name: str
    config: ConsumerConfig


@dataclass
class SequencePair(Base):
    consumer_seq: int = 0
    stream_seq: int = 0


@dataclass
class ConsumerState(Base):
    """
    ConsumerState is the live delivery and acknowledgement progress of a consumer.
    """
    delivered: Optional[SequencePair] = None
    ack_floor: Optional[SequencePair] = None
    num_pending: Optional[int] = None
    num_redelivered: Optional[int] = None

    @classmethod
    def from_response(cls, resp: Dict[str, Any]):
        resp = dict(resp)
        cls._convert(resp, 'delivered', SequencePair)
        cls._convert(resp, 'ack_floor', SequencePair)
        return super().from_response(resp)


@dataclass
class ConsumerInfo(Base):
    """
    ConsumerInfo represents the info about the consumer.
    """
    name: str
    stream_name: str
    config: ConsumerConfig
    state: ConsumerState

    @classmethod
    def from_response(cls, resp: Dict[str, Any]):
        resp = dict(resp)
        cls._convert(resp, 'config', ConsumerConfig)
        cls._convert(resp, 'state', ConsumerState)
        if resp.get('config') is None:
            resp['config'] = ConsumerConfig()
        if resp.get('state') is None:
            resp['state'] = ConsumerState()
        return super().from_response(resp)
