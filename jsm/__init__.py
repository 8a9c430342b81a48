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
from typing import List, Union

import nats

from .api import (
    DEFAULT_CONSUMER,
    SAMPLED_DEFAULT_CONSUMER,
    AckPolicy,
    ConsumerConfig,
    ConsumerInfo,
    ConsumerState,
    DeliverPolicy,
    ReplayPolicy,
)
from .consumer import Consumer
from .manager import ConsumerManager
from .options import *  # noqa: F401,F403
from .types import MessagingClient

__version__ = "0.1.0"


async def connect(
    servers: Union[str, List[str]] = ["nats://localhost:4222"],
    timeout: float = 5,
    **options
) -> ConsumerManager:
    """
    :param servers: List of servers to connect.
    :param timeout: Timeout in seconds applied to every consumer request.
    :param options: NATS connect options.

    ::

        import asyncio
        import jsm

        async def main():
            mgr = await jsm.connect('localhost')
            consumer = await mgr.new_consumer(
                'ORDERS', jsm.durable_name('orders-worker'), jsm.ack_wait(10)
            )
            msg = await consumer.next_msg()
            await mgr.connection.close()

        if __name__ == '__main__':
            asyncio.run(main())

    """
    nc = await nats.connect(servers, **options)
    return ConsumerManager(nc, timeout=timeout)
