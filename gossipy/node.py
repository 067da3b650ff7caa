"""Node runtime: JSON messages exchanged over line-oriented text streams."""

from __future__ import annotations

import abc
import enum
import itertools
import json
import queue
import sys
import threading
from dataclasses import dataclass
from typing import Any, Iterator, TextIO


class ProtocolError(Exception):
    """Raised when traffic does not follow the message protocol."""


def _optional_id(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ProtocolError(f"{key!r} must be a non-negative integer, got {value!r}")
    return value


def _required_str(data: dict[str, Any], key: str) -> str:
    try:
        value = data[key]
    except KeyError:
        raise ProtocolError(f"missing field {key!r}") from None
    if not isinstance(value, str):
        raise ProtocolError(f"field {key!r} must be a string, got {value!r}")
    return value


@dataclass
class Body:
    """Message body: identifiers plus a payload tagged by its ``type`` key."""

    id: int | None
    in_reply_to: int | None
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"msg_id": self.id, "in_reply_to": self.in_reply_to, **self.payload}

    @classmethod
    def from_dict(cls, data: Any) -> Body:
        if not isinstance(data, dict):
            raise ProtocolError(f"message body must be an object, got {data!r}")
        payload = {k: v for k, v in data.items() if k not in ("msg_id", "in_reply_to")}
        _required_str(payload, "type")
        return cls(
            id=_optional_id(data, "msg_id"),
            in_reply_to=_optional_id(data, "in_reply_to"),
            payload=payload,
        )


@dataclass
class Message:
    """A message routed from ``src`` to ``dst``."""

    src: str
    dst: str
    body: Body

    def to_dict(self) -> dict[str, Any]:
        return {"src": self.src, "dest": self.dst, "body": self.body.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        if not isinstance(data, dict):
            raise ProtocolError(f"message must be an object, got {data!r}")
        if "body" not in data:
            raise ProtocolError("missing field 'body'")
        return cls(
            src=_required_str(data, "src"),
            dst=_required_str(data, "dest"),
            body=Body.from_dict(data["body"]),
        )


class Handler(abc.ABC):
    """Reacts to incoming messages and, optionally, to local commands."""

    @abc.abstractmethod
    def handle(self, msg: Message, node: Node) -> None:
        """Handle one incoming message."""

    def handle_command(self, cmd: Any, node: Node) -> None:
        """Handle one command; only handlers fed by a command queue need this."""
        raise ProtocolError(f"{type(self).__name__} does not handle commands")


def _is_truncated(exc: json.JSONDecodeError, buffer: str) -> bool:
    return exc.pos >= len(buffer.rstrip()) or exc.msg.startswith("Unterminated string")


def _read_json_values(stream: TextIO) -> Iterator[Any]:
    """Yield consecutive JSON values from a stream, whatever their line breaks."""
    decoder = json.JSONDecoder()
    buffer = ""
    eof = False
    while True:
        buffer = buffer.lstrip()
        if buffer:
            try:
                value, end = decoder.raw_decode(buffer)
            except json.JSONDecodeError as exc:
                if eof or not _is_truncated(exc, buffer):
                    raise ProtocolError(f"invalid JSON in input: {exc}") from exc
            else:
                buffer = buffer[end:]
                yield value
                continue
        elif eof:
            return
        line = stream.readline()
        if line:
            buffer += line
        else:
            eof = True


class _Event(enum.Enum):
    MESSAGE = enum.auto()
    COMMAND = enum.auto()


_STOP = object()


def _forward_commands(commands: Any, events: queue.SimpleQueue) -> None:
    while True:
        events.put((_Event.COMMAND, commands.get()))


class Node:
    """A cluster member, initialised by the ``init`` message read from its input."""

    def __init__(self, input_stream: TextIO | None = None, output_stream: TextIO | None = None):
        self._input = input_stream if input_stream is not None else sys.stdin
        self._output = output_stream if output_stream is not None else sys.stdout
        self._id_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._msg_ids = itertools.count(1)
        self._id = ""
        self._node_ids: list[str] = []
        self._commands: Any = None
        self._incoming = _read_json_values(self._input)
        self._initialize()

    def _initialize(self) -> None:
        try:
            raw = next(self._incoming)
        except StopIteration:
            raise ProtocolError("failed to read init message from input") from None
        msg = Message.from_dict(raw)
        payload = msg.body.payload
        kind = payload["type"]
        if kind == "init_ok":
            raise ProtocolError(f"unexpected message received: {msg!r}")
        if kind != "init":
            raise ProtocolError(f"expected init message, got type {kind!r}")
        node_id = _required_str(payload, "node_id")
        node_ids = payload.get("node_ids")
        if not isinstance(node_ids, list) or not all(isinstance(n, str) for n in node_ids):
            raise ProtocolError(f"'node_ids' must be a list of strings, got {node_ids!r}")
        self._id = node_id
        self._node_ids = list(node_ids)
        self.reply(msg, {"type": "init_ok"})

    def register_command_queue(self, commands: Any) -> None:
        """Register a queue whose items are delivered to the handler as commands."""
        self._commands = commands

    def run(self, handler: Handler) -> None:
        """Feed every incoming message and queued command to ``handler``.

        Returns once the input is exhausted and every received message is handled.
        """
        events: queue.SimpleQueue = queue.SimpleQueue()
        if self._commands is not None:
            threading.Thread(
                target=_forward_commands, args=(self._commands, events), daemon=True
            ).start()
        worker = threading.Thread(target=self._dispatch, args=(events, handler), daemon=True)
        worker.start()
        try:
            for raw in self._incoming:
                events.put((_Event.MESSAGE, Message.from_dict(raw)))
        except ProtocolError as exc:
            raise ProtocolError(f"deserializing message from input failed: {exc}") from exc
        finally:
            events.put(_STOP)
            worker.join()

    def _dispatch(self, events: queue.SimpleQueue, handler: Handler) -> None:
        while True:
            event = events.get()
            if event is _STOP:
                return
            kind, item = event
            try:
                if kind is _Event.MESSAGE:
                    handler.handle(item, self)
                else:
                    handler.handle_command(item, self)
            except Exception as exc:  # a failing handler must not stop the node
                print(f"ERROR: {exc!r}", file=sys.stderr)

    def reply(self, incoming: Message, payload: dict[str, Any]) -> None:
        """Answer ``incoming`` with a new message carrying ``payload``."""
        body = Body(id=self._next_msg_id(), in_reply_to=incoming.body.id, payload=payload)
        self.send(Message(src=self.id(), dst=incoming.src, body=body))

    def send_to(self, dst: str, payload: dict[str, Any]) -> None:
        """Send a new message carrying ``payload`` to ``dst``."""
        body = Body(id=self._next_msg_id(), in_reply_to=None, payload=payload)
        self.send(Message(src=self.id(), dst=dst, body=body))

    def send(self, msg: Message) -> None:
        """Write ``msg`` as one line of JSON to the output."""
        try:
            line = json.dumps(msg.to_dict(), separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise ProtocolError(f"cannot encode message: {exc}") from exc
        with self._write_lock:
            self._output.write(line + "\n")
            self._output.flush()

    def id(self) -> str:
        """This node's identifier."""
        return self._id

    def node_ids(self) -> list[str]:
        """Identifiers of every node in the cluster, this one included."""
        return list(self._node_ids)

    def _next_msg_id(self) -> int:
        with self._id_lock:
            return next(self._msg_ids)