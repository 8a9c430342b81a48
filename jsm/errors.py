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

from typing import Optional

import nats.errors


class Error(nats.errors.Error):
    """
    An Error raised when managing or consuming JetStream consumers.
    """

    def __init__(self, description: Optional[str] = None) -> None:
        super().__init__(description)
        self.description = description

    def __str__(self) -> str:
        desc = ''
        if self.description:
            desc = self.description
        return f"jsm: {self.__class__.__name__} {desc}".rstrip()


class ConfigurationError(Error):
    """
    Raised by a consumer option that rejects its input. No request
    has been sent when this is raised.
    """
    pass


class APIError(Error):
    """
    The server answered a consumer request with an error.
    """

    def __init__(
        self,
        description: Optional[str] = None,
        stream: Optional[str] = None,
        consumer: Optional[str] = None,
    ) -> None:
        super().__init__(description)
        self.stream = stream
        self.consumer = consumer

    def __str__(self) -> str:
        return (
            f"jsm: {type(self).__name__}: stream={self.stream} consumer={self.consumer} "
            f"description='{self.description}'"
        )


class NotFoundError(APIError):
    """
    The consumer or its stream does not exist.
    """
    pass


class UnknownResponseError(Error):
    """
    The server answered with something that is neither an OK nor an
    error marker.
    """

    def __init__(self, consumer: Optional[str] = None, data: bytes = b'') -> None:
        super().__init__(f"unknown response while removing consumer {consumer}: {data!r}")
        self.consumer = consumer
        self.data = data


class ModeError(Error):
    """
    A push only operation was used on a pull consumer or the other way around.
    """
    mode = ''

    def __init__(self, stream: str, consumer: str) -> None:
        super().__init__(f"consumer {stream} > {consumer} is not {self.mode}-based")
        self.stream = stream
        self.consumer = consumer


class NotPushBasedError(ModeError):
    mode = 'push'


class NotPullBasedError(ModeError):
    mode = 'pull'
