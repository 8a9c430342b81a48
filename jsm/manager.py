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
import json
import logging
from typing import TYPE_CHECKING, Optional

import nats.errors

from jsm import api
from jsm.consumer import Consumer
from jsm.errors import APIError, NotFoundError, UnknownResponseError
from jsm.options import ConsumerOption, new_consumer_configuration

if TYPE_CHECKING:
    from jsm.types import MessagingClient, Msg

logger = logging.getLogger(__name__)


class ConsumerManager:
    """
    ConsumerManager creates, loads and removes JetStream consumers.

    Every request goes through the injected connection and is bounded
    by the same timeout.
    """

    def __init__(
        self,
        conn: MessagingClient,
        prefix: str = api.DEFAULT_PREFIX,
        timeout: float = 5,
    ) -> None:
        self._prefix = prefix
        self._nc = conn
        self._timeout = timeout

    @property
    def connection(self) -> MessagingClient:
        return self._nc

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def timeout(self) -> float:
        return self._timeout

    async def new_consumer(
        self, stream: str, *opts: ConsumerOption
    ) -> Optional[Consumer]:
        """
        Create a consumer based on DEFAULT_CONSUMER modified by opts.
        """
        return await self.new_consumer_from_template(
            stream, api.DEFAULT_CONSUMER, *opts
        )

    async def new_consumer_from_template(
        self,
        stream: str,
        template: api.ConsumerConfig,
        *opts: ConsumerOption,
    ) -> Optional[Consumer]:
        """
        Create a consumer from template modified by opts.

        Durable consumers are loaded back from the server after creation.
        Ephemeral consumers cannot be looked up by name, so None is
        returned for them.
        """
        config = new_consumer_configuration(template, *opts)
        req = api.CreateConsumerRequest(stream_name=stream, config=config)
        msg = await self._request(
            f"{self._prefix}.{api.CREATE_CONSUMER}",
            json.dumps(req.as_dict()).encode(),
        )
        if not api.is_ok_response(msg.data):
            raise APIError(
                description=msg.data.decode(errors="replace"),
                stream=stream,
                consumer=config.durable_name,
            )

        if config.durable_name:
            return await self.load_consumer(stream, config.durable_name)

        return None

    async def load_or_new_consumer(
        self, stream: str, name: str, *opts: ConsumerOption
    ) -> Optional[Consumer]:
        return await self.load_or_new_consumer_from_template(
            stream, name, api.DEFAULT_CONSUMER, *opts
        )

    async def load_or_new_consumer_from_template(
        self,
        stream: str,
        name: str,
        template: api.ConsumerConfig,
        *opts: ConsumerOption,
    ) -> Optional[Consumer]:
        """
        Load a consumer by name, creating it from template and opts when
        the load fails.

        Any load failure leads to a create, not only a missing consumer.
        """
        try:
            return await self.load_consumer(stream, name)
        except (nats.errors.Error, asyncio.TimeoutError) as e:
            if not isinstance(e, NotFoundError):
                logger.warning(
                    "loading consumer %s > %s failed, creating it instead: %s",
                    stream, name, e
                )
        return await self.new_consumer_from_template(stream, template, *opts)

    async def load_consumer(self, stream: str, name: str) -> Consumer:
        consumer = Consumer(self, stream, name)
        await consumer.reset()
        return consumer

    async def consumer_info(self, stream: str, name: str) -> api.ConsumerInfo:
        msg = await self._request(
            f"{self._prefix}.{api.CONSUMER_INFO}", f"{stream} {name}".encode()
        )
        if api.is_error_response(msg.data):
            desc = api.error_description(msg.data)
            if "not found" in desc.lower():
                raise NotFoundError(desc, stream=stream, consumer=name)
            raise APIError(desc, stream=stream, consumer=name)

        try:
            return api.ConsumerInfo.from_response(json.loads(msg.data))
        except (TypeError, ValueError, KeyError) as e:
            raise APIError(
                f"invalid consumer info response: {e}",
                stream=stream,
                consumer=name,
            ) from e

    async def delete_consumer(self, stream: str, name: str) -> bool:
        msg = await self._request(
            f"{self._prefix}.{api.DELETE_CONSUMER}", f"{stream} {name}".encode()
        )
        if api.is_error_response(msg.data):
            raise APIError(
                api.error_description(msg.data), stream=stream, consumer=name
            )
        if api.is_ok_response(msg.data):
            return True

        raise UnknownResponseError(consumer=name, data=msg.data)

    async def _request(self, subject: str, payload: bytes = b'') -> Msg:
        logger.debug("request: %s %r", subject, payload)
        msg = await self._nc.request(subject, payload, timeout=self._timeout)
        logger.debug("response: %s %r", subject, msg.data)
        return msg
