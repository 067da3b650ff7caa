"""Unique-id node: hands out identifiers that are unique across the cluster."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from .node import Handler, Message, Node, ProtocolError


@dataclass
class GenerateIdHandler(Handler):
    """Answers ``generate`` with ``<node id>-<counter>``."""

    counter: int = 1

    def handle(self, msg: Message, node: Node) -> None:
        unique_id = f"{node.id()}-{self.counter}"
        kind = msg.body.payload["type"]
        if kind == "generate_ok":
            return
        if kind != "generate":
            raise ProtocolError(f"unknown message type {kind!r}")
        self.counter += 1
        node.reply(msg, {"type": "generate_ok", "id": unique_id})


def main(argv=None) -> int:
    try:
        node = Node()
        node.run(GenerateIdHandler())
    except ProtocolError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())