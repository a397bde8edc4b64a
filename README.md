# asteroidmq

The data model and an asyncio websocket client for a topic-based message
queue. A client connects to a node over a websocket. It can then:

- put endpoints online on a topic;
- send messages to a topic;
- acknowledge the messages its endpoints receive.

Endpoints subscribe with glob-style interests. When a client sends a
message, it waits for the node's answer, and that answer carries the
status each target endpoint reported.

## Installation

```
pip install asteroidmq
```

To install the test dependencies as well:

```
pip install "asteroidmq[test]"
```

## Concepts

- **`TopicCode`** (`asteroidmq.topic`) is the name of a topic, such as
  `TopicCode("test")`.
- **`Subject`** (`asteroidmq.interest`) is a slash-separated path that a
  message is addressed to, such as `Subject("event/hello/avatar/b2")`.
  Runs of slashes count as a single separator.
- **`Interest`** (`asteroidmq.interest`) is a pattern made of segments:
  - A literal segment matches itself.
  - `*` matches exactly one segment.
  - `**` matches one or more segments.

  For example, `event/*` matches `event/hello` but not
  `event/hello/avatar/b2`, while `event/**/b2` matches the latter.
- **`MessageAckExpectKind`** (`asteroidmq.message`) sets how far delivery
  must go before the sender is answered: `SENT`, `RECEIVED` or
  `PROCESSED`.
- **`MessageStatusKind`** is the state of a message at one endpoint. Its
  helpers are `is_reached`, `is_failed` and `is_resolved`.
- **`MessageTargetKind`** is the delivery mode: `PUSH`, `ONLINE`,
  `DURABLE` or `AVAILABLE`.

## Client usage

```python
import asyncio

from asteroidmq.client_node import ClientNode
from asteroidmq.edge import EdgeMessage
from asteroidmq.interest import Interest, Subject
from asteroidmq.topic import TopicCode

TOPIC = TopicCode("test")


async def main() -> None:
    node = await ClientNode.connect("ws://localhost:8080/connect?node_id=...")
    endpoint = await node.create_endpoint(TOPIC, [Interest("event/**/b2")])

    message = EdgeMessage.builder(
        TOPIC,
        [Subject("event/hello"), Subject("event/hello/avatar/b2")],
        b"world",
    ).build()
    result = await node.send_message(message)
    print(result.status)

    received = await endpoint.next_message()
    if received is not None:
        print(received.text())
        await received.ack_processed()

    await endpoint.close()
    await node.close()


asyncio.run(main())
```

`ClientNode.send_message` returns a `WaitAckSuccess`. Its `status` maps
each `EndpointAddr` to a `MessageStatusKind`.

Any of these raises a `ClientNodeError`, whose `kind` is a
`ClientErrorKind`:

- the node answers with an `EdgeError`;
- waiting for acknowledgements fails;
- the node sends an unexpected response;
- the connection is lost.

Both `ClientNode` and `ClientEndpoint` are async context managers that
close themselves on exit. Once its node is closed, an endpoint's
`next_message()` returns `None`.

An endpoint can change its subscription while it runs:

```python
await endpoint.update_interests([Interest("event/hello")])
await endpoint.modify_interests(lambda interests: interests.add(Interest("event/*")))
```

A received message also supports `ack_received()` and `ack_failed()`. To
send a `MessageAck` you have built yourself, use `ClientNode.ack`.

## Building messages

`MessageHeader.builder(subjects)` returns a builder that sets a fresh
`MessageId` when it builds. `EdgeMessage.builder(topic_code, subjects,
payload)` returns a builder that does not. Both have these methods:

- `ack_kind(...)`
- `mode_push()`
- `mode_online()`
- `mode_durable(MessageDurableConfig(expire=..., max_receiver=...))`

The edge builder also has `with_subject(...)`. Call `build()` on either
builder to finish it.

`Message.create(header, payload)` accepts bytes or text. Its `text()`
method decodes the payload as UTF-8, and its `json()` method parses the
payload as JSON.

## Wire format

Every model class has `to_json()` and a `from_json(...)` class method, and
both work on plain JSON values. The module `asteroidmq.edge` also has:

- `encode_payload(payload)`, which turns an `EdgeRequest`, an
  `EdgeResponse`, an `EdgePush` or an `EdgeError` into compact JSON text;
- `decode_payload(text)`, which turns that text back into one of them.

In JSON, byte payloads and `MessageId` values appear as standard base64.
`EndpointAddr` and `NodeId` values appear as URL-safe base64.

## Identifiers

`MessageId`, `EndpointAddr` and `NodeId` are 16-byte identifiers.

- `MessageId.new_snowflake()` and `EndpointAddr.new_snowflake()` combine
  three parts:
  - a timestamp in seconds;
  - a per-thread counter;
  - a digest of the machine and thread.
- `NodeId.snowflake()` builds its id from the same digest, a per-process
  instance counter and the timestamp.
- `NodeId.new_indexed(n)` and `NodeId.sha256(data)` give the same id
  every time for the same input.

The machine part of the digest comes from `/etc/machine-id` or
`/var/lib/dbus/machine-id`. If neither exists, it comes from the
`MACHINE_ID` environment variable.

## Routing helper

`InterestMap` maps interests to values and finds every value whose
interest matches a subject:

```python
from asteroidmq.interest import Interest, Subject
from asteroidmq.interest_map import InterestMap

interest_map = InterestMap()
interest_map.insert(Interest("event/**/user/a"), 1)
interest_map.insert(Interest("event/**/user/*"), 2)
assert interest_map.find(Subject("event/hello-world/user/a")) == {1, 2}
```

`delete(value)` removes a value together with all of its interests.
`to_raw()` and `InterestMap.from_raw(...)` convert the map to and from a
plain value-to-interests table.

## What this package does not do

This package is only a client and a data model. It does not:

- contain a node or server;
- keep topic state;
- run consensus between nodes;
- store durable messages.

`ClientNode` needs a running node that accepts websocket connections and
speaks the JSON wire format described above. `asteroidmq.errors.Error`,
`ErrorKind`, `asteroidmq.defaults` (`DEFAULT_TCP_PORT`,
`DEFAULT_TCP_SOCKET_ADDR`, `TimestampSec`) and `InterestMap` are building
blocks for such a node. The package does not use them on its own.