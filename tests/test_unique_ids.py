import io
import json
import sys

import pytest

from gossipy.node import Body, Message, Node, ProtocolError
from gossipy.unique_ids import GenerateIdHandler, main


def init_text(node_id):
    return json.dumps(
        {"src": "c0", "dest": node_id, "body": {"type": "init", "msg_id": 1, "node_id": node_id, "node_ids": ["n1", "n2"]}}
    ) + "\n"


def make_node(node_id="n1"):
    out = io.StringIO()
    return Node(io.StringIO(init_text(node_id)), out), out


def incoming(kind, msg_id=1):
    return Message(src="c1", dst="n1", body=Body(id=msg_id, in_reply_to=None, payload={"type": kind}))


def replies(out):
    return [json.loads(line) for line in out.getvalue().splitlines()][1:]


def test_first_id_format():
    node, out = make_node()
    GenerateIdHandler().handle(incoming("generate"), node)
    assert replies(out)[0]["body"]["id"] == "n1-1"


def test_ids_unique_within_node():
    node, out = make_node()
    handler = GenerateIdHandler()
    for i in range(50):
        handler.handle(incoming("generate", i), node)
    ids = [m["body"]["id"] for m in replies(out)]
    assert len(set(ids)) == 50


def test_ids_unique_across_nodes():
    node_a, out_a = make_node("n1")
    node_b, out_b = make_node("n2")
    for node in (node_a, node_b):
        handler = GenerateIdHandler()
        for i in range(10):
            handler.handle(incoming("generate", i), node)
    ids = [m["body"]["id"] for m in replies(out_a) + replies(out_b)]
    assert len(set(ids)) == 20


def test_generate_ok_is_ignored_and_keeps_counter():
    node, out = make_node()
    handler = GenerateIdHandler()
    handler.handle(incoming("generate_ok"), node)
    assert replies(out) == []
    assert handler.counter == GenerateIdHandler().counter


def test_reply_refers_to_request():
    node, out = make_node()
    GenerateIdHandler().handle(incoming("generate", 17), node)
    reply = replies(out)[0]
    assert reply["body"]["in_reply_to"] == 17
    assert reply["body"]["type"] == "generate_ok"
    assert reply["dest"] == "c1"


def test_unknown_type_raises():
    node, _ = make_node()
    with pytest.raises(ProtocolError):
        GenerateIdHandler().handle(incoming("nonsense"), node)


def test_main_serves_stdin(monkeypatch):
    requests = "".join(
        json.dumps({"src": "c1", "dest": "n1", "body": {"type": "generate", "msg_id": i}}) + "\n" for i in range(3)
    )
    out = io.StringIO()
    monkeypatch.setattr(sys, "stdin", io.StringIO(init_text("n1") + requests))
    monkeypatch.setattr(sys, "stdout", out)
    assert main([]) == 0
    ids = [m["body"]["id"] for m in replies(out)]
    assert len(set(ids)) == 3
    assert all(i.startswith("n1-") for i in ids)