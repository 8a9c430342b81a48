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
"""
Consumer options.

Each option returns a callable that takes a ``ConsumerConfig`` and returns
an updated copy, raising ``ConfigurationError`` when its input is invalid::

    config = new_consumer_configuration(
        api.DEFAULT_CONSUMER,
        durable_name("orders-worker"),
        ack_wait(10),
    )
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Union

from jsm import api
from jsm.errors import ConfigurationError

__all__ = [
    "ConsumerOption",
    "new_consumer_configuration",
    "delivery_subject",
    "durable_name",
    "start_at_sequence",
    "start_at_time",
    "start_at_time_delta",
    "deliver_all_available",
    "start_with_last_received",
    "acknowledge_none",
    "acknowledge_all",
    "acknowledge_explicit",
    "ack_wait",
    "max_delivery_attempts",
    "filter_stream_by_subject",
    "replay_instantly",
    "replay_as_received",
    "sample_percent",
]

ConsumerOption = Callable[[api.ConsumerConfig], api.ConsumerConfig]

Duration = Union[float, timedelta]


def _seconds(d: Duration) -> float:
    if isinstance(d, timedelta):
        return d.total_seconds()
    return float(d)


def new_consumer_configuration(
    template: api.ConsumerConfig, *opts: ConsumerOption
) -> api.ConsumerConfig:
    """
    Apply opts in order to a copy of template. The first option that
    raises aborts the whole configuration and the template is left as it was.
    """
    config = template.evolve()
    for opt in opts:
        config = opt(config)
    return config


def delivery_subject(s: str) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(deliver_subject=s)

    return opt


def durable_name(s: str) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(durable_name=s)

    return opt


def start_at_sequence(seq: int) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(
            deliver_policy=api.DeliverPolicy.BY_START_SEQUENCE,
            opt_start_seq=seq,
            opt_start_time=None,
        )

    return opt


def start_at_time(t: datetime) -> ConsumerOption:
    """
    Start at an absolute time, naive datetimes are taken as UTC.
    """
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(
            deliver_policy=api.DeliverPolicy.BY_START_TIME,
            opt_start_seq=None,
            opt_start_time=t,
        )

    return opt


def start_at_time_delta(d: Duration) -> ConsumerOption:
    """
    Start at the time d before the moment the option is applied.
    """

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        start = datetime.now(timezone.utc) - timedelta(seconds=_seconds(d))
        return config.evolve(
            deliver_policy=api.DeliverPolicy.BY_START_TIME,
            opt_start_seq=None,
            opt_start_time=start,
        )

    return opt


def _deliver_policy(policy: api.DeliverPolicy) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(
            deliver_policy=policy, opt_start_seq=None, opt_start_time=None
        )

    return opt


def deliver_all_available() -> ConsumerOption:
    return _deliver_policy(api.DeliverPolicy.ALL)


def start_with_last_received() -> ConsumerOption:
    return _deliver_policy(api.DeliverPolicy.LAST)


def _ack_policy(policy: api.AckPolicy) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(ack_policy=policy)

    return opt


def acknowledge_none() -> ConsumerOption:
    return _ack_policy(api.AckPolicy.NONE)


def acknowledge_all() -> ConsumerOption:
    return _ack_policy(api.AckPolicy.ALL)


def acknowledge_explicit() -> ConsumerOption:
    return _ack_policy(api.AckPolicy.EXPLICIT)


def ack_wait(d: Duration) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(ack_wait=_seconds(d))

    return opt


def max_delivery_attempts(n: int) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        if n == 0:
            raise ConfigurationError(
                "configuration would prevent all deliveries"
            )
        return config.evolve(max_deliver=n)

    return opt


def filter_stream_by_subject(s: str) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(filter_subject=s)

    return opt


def _replay_policy(policy: api.ReplayPolicy) -> ConsumerOption:

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        return config.evolve(replay_policy=policy)

    return opt


def replay_instantly() -> ConsumerOption:
    return _replay_policy(api.ReplayPolicy.INSTANT)


def replay_as_received() -> ConsumerOption:
    return _replay_policy(api.ReplayPolicy.ORIGINAL)


def sample_percent(i: int) -> ConsumerOption:
    """
    Sample i percent of acknowledgements, 0 disables sampling.
    """

    def opt(config: api.ConsumerConfig) -> api.ConsumerConfig:
        if i < 0 or i > 100:
            raise ConfigurationError("sample percent must be 0-100")
        if i == 0:
            return config.evolve(sample_freq=None)
        return config.evolve(sample_freq=f"{i}%")

    return opt
