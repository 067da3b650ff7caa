"""Broadcast node: collects values and gossips them to its neighbours."""

from __future__ import annotations

import enum
import queue
import re
import sys
import threading
from typing import Any, Iterable

from .node import Handler, Message, Node, ProtocolError

DEFAULT_GOSSIP_INTERVAL_MS = 200


class Command(enum.Enum):
    """Local commands that drive the broadcast node."""

    SEND_GOSSIP = "send_gossip"


def _int_set(payload: dict[str, Any], key: str) -> set[int]:
    values = payload.get(key)
    if not isinstance(values, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in values
    ):
        raise ProtocolError(f"{key!r} must be a list of integers, got {values!r}")
    return set(values)


class BroadcastHandler(Handler):
    """Keeps the set of seen values and what each peer is known to have."""

    def __init__(self, node_ids: Iterable[str]):
        self.messages: set[int] = set()
        self.topology: dict[str, list[str]] = {}
        self.neighbours: list[str] = []
        self.others_know: dict[str, set[int]] = {node_id: set() for node_id in node_ids}

    def _known_by(self, src: str) -> set[int]:
        try:
            return self.others_know[src]
        except KeyError:
            raise ProtocolError(f"message from unknown node in the cluster: {src!r}") from None

    def handle(self, msg: Message, node: Node) -> None:
        payload = msg.body.payload
        kind = payload["type"]
        if kind == "broadcast":
            value = payload.get("message")
            if not isinstance(value, int) or isinstance(value, bool):
                raise ProtocolError(f"'message' must be an integer, got {value!r}")
            self.messages.add(value)
            reply = {"type": "broadcast_ok"}
        elif kind == "gossip":
            have = _int_set(payload, "have")
            self.messages |= have
            self._known_by(msg.src).update(have)
            reply = {"type": "gossip_ok", "have": sorted(have)}
        elif kind == "read":
            reply = {"type": "read_ok", "messages": sorted(self.messages)}
        elif kind == "read_ok":
            self.others_know[msg.src] = _int_set(payload, "messages")
            return
        elif kind == "topology":
            topology = payload.get("topology")
            if not isinstance(topology, dict) or not all(
                isinstance(v, list) and all(isinstance(n, str) for n in v) for v in topology.values()
            ):
                raise ProtocolError(f"'topology' must map node ids to lists, got {topology!r}")
            self.topology = {k: list(v) for k, v in topology.items()}
            try:
                self.neighbours = list(self.topology[node.id()])
            except KeyError:
                raise ProtocolError(f"node {node.id()!r} is missing from the topology") from None
            reply = {"type": "topology_ok"}
        elif kind in ("broadcast_ok", "topology_ok"):
            return
        elif kind == "gossip_ok":
            self._known_by(msg.src).update(_int_set(payload, "have"))
            return
        else:
            raise ProtocolError(f"unknown message type {kind!r}")
        node.reply(msg, reply)

    def handle_command(self, cmd: Any, node: Node) -> None:
        if cmd is not Command.SEND_GOSSIP:
            raise ProtocolError(f"unknown command {cmd!r}")
        for neighbour in self.neighbours:
            known = self.others_know.get(neighbour)
            if known is None:
                continue
            unknown = self.messages - known
            if not unknown:
                continue
            node.send_to(neighbour, {"type": "gossip", "have": sorted(unknown)})


def _parse_interval(text: str) -> int:
    if not re.fullmatch(r"\+?[0-9]+", text):
        raise ValueError(f"invalid gossip interval {text!r}")
    return int(text)


def _tick(commands: queue.SimpleQueue, interval: float, stop: threading.Event) -> None:
    while not stop.wait(interval):
        commands.put(Command.SEND_GOSSIP)


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        interval_ms = _parse_interval(args[0]) if args else DEFAULT_GOSSIP_INTERVAL_MS
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Using gossip interval {interval_ms} ms", file=sys.stderr)

    stop = threading.Event()
    try:
        node = Node()
        handler = BroadcastHandler(node.node_ids())
        commands: queue.SimpleQueue = queue.SimpleQueue()
        node.register_command_queue(commands)
        threading.Thread(
            target=_tick, args=(commands, interval_ms / 1000, stop), daemon=True
        ).start()
        node.run(handler)
    except ProtocolError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        stop.set()
    return 0


if __name__ == "__main__":
    sys.exit(main())