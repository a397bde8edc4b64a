"""Endpoints owned by a client node and the messages they receive."""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Optional

from asteroidmq.client_error import ClientNodeError
from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Interest
from asteroidmq.message import Message, MessageAck
from asteroidmq.topic import TopicCode

if TYPE_CHECKING:
    from asteroidmq.client_node import ClientNode

logger = logging.getLogger(__name__)

_CLOSED = object()


def _live(node_ref: Callable[[], Any]) -> Optional[ClientNode]:
    node = node_ref()
    if node is None or node.closed:
        return None
    return node


class ClientReceivedMessage:
    """A message delivered to an endpoint; attributes of the message are reachable directly."""

    def __init__(
        self,
        ep_addr: EndpointAddr,
        topic_code: TopicCode,
        node_ref: Callable[[], Any],
        message: Message,
    ) -> None:
        self.ep_addr = ep_addr
        self.topic_code = topic_code
        self._node_ref = node_ref
        self.message = message

    def __getattr__(self, name: str) -> Any:
        if name == "message":
            raise AttributeError(name)
        return getattr(self.message, name)

    def into_inner(self) -> Message:
        return self.message

    async def _ack(self, make: Callable[[TopicCode, EndpointAddr], MessageAck]) -> None:
        node = _live(self._node_ref)
        if node is None:
            raise ClientNodeError.disconnected()
        await node.send_single_ack(make(self.topic_code, self.ep_addr))

    async def ack_failed(self) -> None:
        await self._ack(self.message.header.ack_failed)

    async def ack_processed(self) -> None:
        await self._ack(self.message.header.ack_processed)

    async def ack_received(self) -> None:
        await self._ack(self.message.header.ack_received)


class ClientEndpoint:
    """An endpoint of a topic, registered by a client node."""

    def __init__(
        self,
        addr: EndpointAddr,
        topic_code: TopicCode,
        interests: Iterable[Interest],
        node: ClientNode,
    ) -> None:
        self.addr = addr
        self.topic_code = topic_code
        self._interests: set[Interest] = set(interests)
        self._node_ref = weakref.ref(node)
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    def __repr__(self) -> str:
        return f"ClientEndpoint({self.addr!r}, topic={self.topic_code})"

    def node(self) -> Optional[ClientNode]:
        """The owning node, or ``None`` once it is gone or closed."""
        return _live(self._node_ref)

    def interests(self) -> frozenset[Interest]:
        return frozenset(self._interests)

    async def modify_interests(self, modify: Callable[[set[Interest]], None]) -> None:
        """Let ``modify`` edit a copy of the interests, then send the result."""
        new_interests = set(self._interests)
        modify(new_interests)
        await self.update_interests(new_interests)

    async def update_interests(self, interests: Iterable[Interest]) -> None:
        node = self.node()
        if node is None:
            raise ClientNodeError.disconnected()
        interest_list = list(interests)
        await node.send_ep_interests(self.topic_code, self.addr, interest_list)
        self._interests = set(interest_list)

    async def next_message(self) -> Optional[ClientReceivedMessage]:
        """Wait for the next message; ``None`` once the endpoint is closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return ClientReceivedMessage(self.addr, self.topic_code, self._node_ref, item)

    def deliver(self, message: Message) -> bool:
        """Queue a message for this endpoint; ``False`` if it is closed."""
        if self._closed:
            return False
        self._queue.put_nowait(message)
        return True

    def _detach(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def close(self) -> None:
        """Take the endpoint offline and stop receiving messages."""
        if self._closed:
            return
        self._detach()
        node = self.node()
        if node is None:
            return
        try:
            await node.send_ep_offline(self.topic_code, self.addr)
        except ClientNodeError as exc:
            logger.debug("endpoint offline failed for %r: %s", self.addr, exc)
        node._forget_endpoint(self.addr)

    async def __aenter__(self) -> ClientEndpoint:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()