import io
import json
import sys

import pytest

from gossipy.echo import EchoHandler, main
from gossipy.node import Body, Message, Node, ProtocolError

INIT = json.dumps(
    {"src": "c0", "dest": "n1", "body": {"type": "init", "msg_id": 1, "node_id": "n1", "node_ids": ["n1"]}}
) + "\n"


def msg_line(body, src="c1"):
    return json.dumps({"src": src, "dest": "n1", "body": body}) + "\n"


def run_with(extra):
    out = io.StringIO()
    node = Node(io.StringIO(INIT + extra), out)
    node.run(EchoHandler())
    return [json.loads(line) for line in out.getvalue().splitlines()][1:]


def test_echo_is_echoed():
    sent = run_with(msg_line({"type": "echo", "msg_id": 9, "echo": "hello there"}))
    assert len(sent) == 1
    assert sent[0]["dest"] == "c1"
    assert sent[0]["body"]["type"] == "echo_ok"
    assert sent[0]["body"]["echo"] == "hello there"
    assert sent[0]["body"]["in_reply_to"] == 9


def test_echo_ok_is_ignored():
    assert run_with(msg_line({"type": "echo_ok", "echo": "x"})) == []


def test_several_echoes_reply_in_order():
    extra = "".join(msg_line({"type": "echo", "msg_id": i, "echo": str(i)}) for i in range(4))
    sent = run_with(extra)
    assert [m["body"]["echo"] for m in sent] == ["0", "1", "2", "3"]


def test_unknown_type_raises():
    node = Node(io.StringIO(INIT), io.StringIO())
    msg = Message(src="c1", dst="n1", body=Body(id=1, in_reply_to=None, payload={"type": "other"}))
    with pytest.raises(ProtocolError):
        EchoHandler().handle(msg, node)


def test_missing_echo_field_raises():
    node = Node(io.StringIO(INIT), io.StringIO())
    msg = Message(src="c1", dst="n1", body=Body(id=1, in_reply_to=None, payload={"type": "echo"}))
    with pytest.raises(ProtocolError):
        EchoHandler().handle(msg, node)


def test_main_serves_stdin(monkeypatch):
    out = io.StringIO()
    monkeypatch.setattr(sys, "stdin", io.StringIO(INIT + msg_line({"type": "echo", "msg_id": 2, "echo": "abc"})))
    monkeypatch.setattr(sys, "stdout", out)
    assert main([]) == 0
    sent = [json.loads(line) for line in out.getvalue().splitlines()]
    assert sent[0]["body"]["type"] == "init_ok"
    assert sent[1]["body"]["echo"] == "abc"


def test_main_fails_without_init(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    monkeypatch.setattr(sys, "stdout", io.StringIO())
    assert main([]) == 1