"""State changes proposed for a topic."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from asteroidmq.endpoint import EndpointAddr
from asteroidmq.interest import Interest
from asteroidmq.message import MessageId, MessageStatusKind
from asteroidmq.topic import TopicCode, status_from_json, status_to_json


@dataclass
class EndpointInterest:
    """Replace the interests of an endpoint in a topic."""

    topic_code: TopicCode
    endpoint: EndpointAddr
    interests: list[Interest] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "topic_code": self.topic_code.to_json(),
            "endpoint": self.endpoint.to_json(),
            "interests": [interest.to_json() for interest in self.interests],
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> EndpointInterest:
        return cls(
            topic_code=TopicCode.from_json(value["topic_code"]),
            endpoint=EndpointAddr.from_json(value["endpoint"]),
            interests=[Interest.from_json(item) for item in value["interests"]],
        )


@dataclass
class MessageStateUpdate:
    """New statuses of a message at some endpoints."""

    message_id: MessageId
    status: dict[EndpointAddr, MessageStatusKind] = field(default_factory=dict)

    @classmethod
    def empty(cls, message_id: MessageId) -> MessageStateUpdate:
        return cls(message_id=message_id, status={})

    def to_json(self) -> dict[str, Any]:
        return {"message_id": self.message_id.to_json(), "status": status_to_json(self.status)}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> MessageStateUpdate:
        return cls(
            message_id=MessageId.from_json(value["message_id"]),
            status=status_from_json(value["status"]),
        )


@dataclass
class SetState:
    """A message state update for a topic."""

    topic: TopicCode
    update: MessageStateUpdate

    def to_json(self) -> dict[str, Any]:
        return {"topic": self.topic.to_json(), "update": self.update.to_json()}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> SetState:
        return cls(
            topic=TopicCode.from_json(value["topic"]),
            update=MessageStateUpdate.from_json(value["update"]),
        )