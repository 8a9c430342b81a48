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

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from jsm import api
from jsm.errors import NotPullBasedError, NotPushBasedError

if TYPE_CHECKING:
    from jsm.manager import ConsumerManager
    from jsm.types import Msg, Subscription

Callback = Callable[[Any], Awaitable[None]]


class Consumer:
    """
    Consumer is a handle on a JetStream consumer of a stream.

    Instances are obtained from a ConsumerManager. After ``delete``
    the handle must not be used anymore.
    """

    def __init__(
        self,
        manager: ConsumerManager,
        stream: str,
        name: str,
        config: Optional[api.ConsumerConfig] = None,
    ) -> None:
        self._manager = manager
        self._stream = stream
        self._name = name
        self._config = config or api.ConsumerConfig()

    def __repr__(self) -> str:
        return f"<jsm Consumer: stream='{self._stream}' name='{self._name}'>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def stream_name(self) -> str:
        return self._stream

    @property
    def config(self) -> api.ConsumerConfig:
        return self._config

    @property
    def delivery_subject(self) -> str:
        return self._config.deliver_subject or ""

    @property
    def durable_name(self) -> str:
        return self._config.durable_name or ""

    @property
    def stream_sequence(self) -> int:
        return self._config.opt_start_seq or 0

    @property
    def start_time(self) -> Optional[datetime]:
        return self._config.opt_start_time

    @property
    def deliver_policy(self) -> api.DeliverPolicy:
        return self._config.deliver_policy

    @property
    def deliver_all(self) -> bool:
        return self._config.deliver_policy == api.DeliverPolicy.ALL

    @property
    def deliver_last(self) -> bool:
        return self._config.deliver_policy == api.DeliverPolicy.LAST

    @property
    def ack_policy(self) -> api.AckPolicy:
        return self._config.ack_policy

    @property
    def ack_wait(self) -> float:
        return self._config.ack_wait or 0

    @property
    def max_deliver(self) -> int:
        return self._config.max_deliver or 0

    @property
    def filter_subject(self) -> str:
        return self._config.filter_subject or ""

    @property
    def replay_policy(self) -> api.ReplayPolicy:
        return self._config.replay_policy

    @property
    def sample_frequency(self) -> str:
        return self._config.sample_freq or ""

    @property
    def is_pull_mode(self) -> bool:
        return not self._config.deliver_subject

    @property
    def is_push_mode(self) -> bool:
        return not self.is_pull_mode

    @property
    def is_durable(self) -> bool:
        return bool(self._config.durable_name)

    @property
    def is_sampled(self) -> bool:
        return self.sample_subject != ""

    @property
    def next_subject(self) -> str:
        """
        Subject to request the next messages from a pull consumer,
        empty for push consumers.
        """
        if not self.is_pull_mode:
            return ""
        return f"{self._manager.prefix}.{api.REQUEST_NEXT}.{self._stream}.{self._name}"

    @property
    def sample_subject(self) -> str:
        """
        Subject the server publishes acknowledgement samples to, empty
        when the consumer is not sampled.
        """
        if not self.sample_frequency:
            return ""
        return f"{api.ACK_SAMPLE_PREFIX}.{self._stream}.{self._name}"

    async def reset(self) -> None:
        """
        Reload the consumer configuration from the server.
        """
        info = await self._manager.consumer_info(self._stream, self._name)
        self._config = info.config

    async def state(self) -> api.ConsumerState:
        info = await self._manager.consumer_info(self._stream, self._name)
        return info.state

    async def delete(self) -> bool:
        return await self._manager.delete_consumer(self._stream, self._name)

    def _check_push(self) -> None:
        if not self.is_push_mode:
            raise NotPushBasedError(self._stream, self._name)

    def _check_pull(self) -> None:
        if not self.is_pull_mode:
            raise NotPullBasedError(self._stream, self._name)

    async def subscribe(self, cb: Callback) -> Subscription:
        self._check_push()
        return await self._manager.connection.subscribe(
            self.delivery_subject, cb=cb
        )

    async def subscribe_sync(self) -> Subscription:
        """
        Subscribe without a callback, messages are read with ``next_msg``.
        """
        self._check_push()
        return await self._manager.connection.subscribe(self.delivery_subject)

    async def queue_subscribe(self, queue: str, cb: Callback) -> Subscription:
        self._check_push()
        return await self._manager.connection.subscribe(
            self.delivery_subject, queue=queue, cb=cb
        )

    async def queue_subscribe_sync(self, queue: str) -> Subscription:
        self._check_push()
        return await self._manager.connection.subscribe(
            self.delivery_subject, queue=queue
        )

    async def chan_subscribe(self, ch: asyncio.Queue) -> Subscription:
        """
        Subscribe and put every delivered message into ch.
        """
        self._check_push()
        return await self._manager.connection.subscribe(
            self.delivery_subject, cb=ch.put
        )

    async def chan_queue_subscribe(
        self, queue: str, ch: asyncio.Queue
    ) -> Subscription:
        self._check_push()
        return await self._manager.connection.subscribe(
            self.delivery_subject, queue=queue, cb=ch.put
        )

    async def queue_subscribe_sync_with_chan(
        self, queue: str, ch: asyncio.Queue
    ) -> Subscription:
        # Same delivery as chan_queue_subscribe on an asyncio connection.
        return await self.chan_queue_subscribe(queue, ch)

    async def next_msgs(self, n: int) -> Msg:
        """
        Request the next n messages from a pull consumer.
        """
        self._check_pull()
        return await self._manager.connection.request(
            self.next_subject,
            str(n).encode(),
            timeout=self._manager.timeout,
        )

    async def next_msg(self) -> Msg:
        return await self.next_msgs(1)
