"""Echo node: answers every ``echo`` message with the same text."""

from __future__ import annotations

import sys

from .node import Handler, Message, Node, ProtocolError


class EchoHandler(Handler):
    """Replies to ``echo`` messages with ``echo_ok``."""

    def handle(self, msg: Message, node: Node) -> None:
        payload = msg.body.payload
        kind = payload["type"]
        if kind == "echo_ok":
            return
        if kind != "echo":
            raise ProtocolError(f"unknown message type {kind!r}")
        echo = payload.get("echo")
        if not isinstance(echo, str):
            raise ProtocolError(f"'echo' must be a string, got {echo!r}")
        node.reply(msg, {"type": "echo_ok", "echo": echo})


def main(argv=None) -> int:
    try:
        node = Node()
        node.run(EchoHandler())
    except ProtocolError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())