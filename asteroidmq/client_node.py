"""A client node that talks to a server node over a websocket."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Union

import websockets
import websockets.exceptions

from asteroidmq.client_endpoint import ClientEndpoint
from asteroidmq.client_error import ClientErrorKind, ClientNodeError
from asteroidmq.edge import (
    EdgeEndpointOffline,
    EdgeEndpointOnline,
    EdgeMessage,
    EdgePush,
    EdgeRequest,
    EdgeRequestContent,
    EdgeResponse,
    EdgeResponseContent,
    EdgeResponseKind,
    EdgeResult,
    decode_payload,
    encode_payload,
)
from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Interest
from asteroidmq.message import MessageAck
from asteroidmq.proposal import EndpointInterest, MessageStateUpdate, SetState
from asteroidmq.topic import TopicCode, WaitAckSuccess

logger = logging.getLogger(__name__)

_U32_MASK = 0xFFFF_FFFF


class ClientNode:
    """Sends requests over a connection and routes pushed messages to endpoints.

    The connection must offer ``async send(text)``, ``async close()`` and async
    iteration over incoming text or bytes frames. It must be created inside a
    running event loop.
    """

    def __init__(self, connection: Any) -> None:
        self._connection = connection
        self._endpoints: dict[EndpointAddr, ClientEndpoint] = {}
        self._pending: dict[int, asyncio.Future[EdgeResult[Any, Any]]] = {}
        self._seq = 0
        self._closed = False
        self._receiver = asyncio.get_running_loop().create_task(self._receive_loop())

    @property
    def closed(self) -> bool:
        return self._closed

    @classmethod
    async def connect(cls, url: str) -> ClientNode:
        try:
            connection = await websockets.connect(url, max_size=None)
        except websockets.exceptions.WebSocketException as exc:
            raise ClientNodeError.from_websocket(exc) from exc
        except OSError as exc:
            raise ClientNodeError(ClientErrorKind.IO, exc) from exc
        logger.debug("connected to server at %s", url)
        return cls(connection)

    async def ack(self, ack: MessageAck) -> None:
        await self.send_single_ack(ack)

    async def send_message(self, message: EdgeMessage) -> WaitAckSuccess:
        response = await self._send_request(message)
        if isinstance(response, EdgeResult):
            if response.is_ok:
                return response.value
            raise ClientNodeError.from_wait_ack(response.error)
        raise ClientNodeError.unexpected_response(response)

    async def create_endpoint(
        self, topic_code: Union[TopicCode, str], interests: Iterable[Interest]
    ) -> ClientEndpoint:
        topic = topic_code if isinstance(topic_code, TopicCode) else TopicCode(topic_code)
        interest_set = set(interests)
        response = await self._send_request(EdgeEndpointOnline(topic, list(interest_set)))
        if not isinstance(response, EndpointAddr):
            raise ClientNodeError.unexpected_response(response)
        endpoint = ClientEndpoint(response, topic, interest_set, self)
        self._endpoints[response] = endpoint
        return endpoint

    async def send_ep_offline(self, topic_code: TopicCode, endpoint: EndpointAddr) -> None:
        response = await self._send_request(EdgeEndpointOffline(topic_code, endpoint))
        self._expect(response, EdgeResponseKind.ENDPOINT_OFFLINE)

    async def send_ep_interests(
        self, topic_code: TopicCode, endpoint: EndpointAddr, interests: Iterable[Interest]
    ) -> None:
        request = EndpointInterest(topic_code, endpoint, list(interests))
        response = await self._send_request(request)
        self._expect(response, EdgeResponseKind.ENDPOINT_INTEREST)

    async def send_single_ack(self, ack: MessageAck) -> None:
        request = SetState(
            topic=ack.topic_code,
            update=MessageStateUpdate(ack.ack_to, {ack.source: ack.kind}),
        )
        response = await self._send_request(request)
        self._expect(response, EdgeResponseKind.SET_STATE)

    async def close(self) -> None:
        """Stop receiving, close the connection and end every endpoint."""
        self._receiver.cancel()
        await asyncio.gather(self._receiver, return_exceptions=True)
        try:
            await self._connection.close()
        except Exception as exc:
            logger.debug("closing connection failed: %s", exc)
        self._shutdown()

    async def __aenter__(self) -> ClientNode:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @staticmethod
    def _expect(response: EdgeResponseContent, kind: EdgeResponseKind) -> None:
        if response is not kind:
            raise ClientNodeError.unexpected_response(response)

    def _forget_endpoint(self, addr: EndpointAddr) -> None:
        self._endpoints.pop(addr, None)

    async def _send_request(self, request: EdgeRequestContent) -> EdgeResponseContent:
        if self._closed:
            raise ClientNodeError.no_connection(request)
        seq_id = self._seq
        self._seq = (seq_id + 1) & _U32_MASK
        future: asyncio.Future[EdgeResult[Any, Any]] = (
            asyncio.get_running_loop().create_future()
        )
        self._pending[seq_id] = future
        try:
            await self._connection.send(encode_payload(EdgeRequest(seq_id, request)))
        except Exception as exc:
            self._pending.pop(seq_id, None)
            logger.error("failed to send request: %s", exc)
            raise ClientNodeError.from_websocket(exc) from exc
        result = await future
        if not result.is_ok:
            raise ClientNodeError.from_edge(result.error)
        return result.value

    async def _receive_loop(self) -> None:
        try:
            async for frame in self._connection:
                self._dispatch(frame)
            logger.debug("stream closed")
        except Exception as exc:
            logger.error("failed to receive message: %s", exc)
        finally:
            self._shutdown()

    def _dispatch(self, frame: Union[str, bytes]) -> None:
        try:
            payload = decode_payload(frame)
        except Exception as exc:
            logger.error("failed to parse message: %s", exc)
            return
        if isinstance(payload, EdgePush):
            for addr in payload.endpoints:
                endpoint = self._endpoints.get(addr)
                if endpoint is None:
                    logger.warning("target endpoint not found: %r", addr)
                elif not endpoint.deliver(payload.message):
                    logger.warning("target endpoint is dropped: %r", addr)
        elif isinstance(payload, EdgeResponse):
            future = self._pending.pop(payload.seq_id, None)
            if future is not None and not future.done():
                future.set_result(payload.result)

    def _shutdown(self) -> None:
        self._closed = True
        endpoints = list(self._endpoints.values())
        self._endpoints.clear()
        for endpoint in endpoints:
            endpoint._detach()
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(ClientNodeError.disconnected())