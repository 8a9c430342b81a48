from typing import Any, Awaitable, Callable, Optional, Protocol


class Msg(Protocol):
    subject: str
    data: bytes


class Subscription(Protocol):

    async def next_msg(self, timeout: Optional[float] = 1.0) -> Any:
        ...

    async def unsubscribe(self, limit: int = 0) -> None:
        ...


class MessagingClient(Protocol):
    """
    The part of a NATS connection used to manage consumers.
    ``nats.aio.client.Client`` satisfies it.
    """

    async def request(
        self,
        subject: str,
        payload: bytes = b'',
        timeout: float = 0.5,
    ) -> Msg:
        ...

    async def subscribe(
        self,
        subject: str,
        queue: str = "",
        cb: Optional[Callable[[Any], Awaitable[None]]] = None,
    ) -> Subscription:
        ...
