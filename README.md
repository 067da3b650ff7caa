# gossipy

gossipy is a small runtime for writing nodes for the Maelstrom
distributed-systems workbench in plain Python. A node reads JSON messages from
standard input and writes each of its own messages to standard output as one
line of JSON. The first message it reads must be `init`, and the node answers
it with `init_ok` before it does anything else.

It has no dependencies beyond the standard library.

## Installation

```
pip install .
```

To run the tests, use `pip install .[test]` and then `pytest`.

## Bundled nodes

Maelstrom starts each node as a command:

- `gossipy-echo` answers every `echo` message with an `echo_ok` message that
  carries the same text.
- `gossipy-unique-ids` answers `generate` with a `generate_ok` message. The
  `id` in that message is the node id joined to a counter that starts at 1,
  for example `n1-1` and then `n1-2`. This makes the id unique across the
  cluster.
- `gossipy-broadcast [INTERVAL_MS]` handles `broadcast`, `read` and
  `topology`. Every `INTERVAL_MS` milliseconds (200 by default) it sends a
  `gossip` message to each neighbour named for it in the topology. The message
  holds the values that the neighbour is not yet known to have. A neighbour
  counts as knowing a value once it has sent that value in `gossip` or
  `read_ok`, or has acknowledged it with `gossip_ok`. If `INTERVAL_MS` is not
  a non-negative integer, the command exits with status 1.

To run the broadcast node under Maelstrom:

```
maelstrom test -w broadcast --bin $(which gossipy-broadcast) --node-count 5 --time-limit 20 --rate 10
```

A command exits with status 1 and prints `Error: ...` to standard error when
the `init` message is missing or malformed, or when the input cannot be parsed.
An error raised while one message is being handled is printed to standard error
as `ERROR: ...`, and the node goes on to the next message.

## Writing your own node

Subclass `gossipy.node.Handler`, then pass an instance to `Node.run`:

```python
import sys
from gossipy.node import Handler, Node

class PingHandler(Handler):
    def handle(self, msg, node):
        if msg.body.payload.get("type") == "ping":
            node.reply(msg, {"type": "pong"})

node = Node(sys.stdin, sys.stdout)   # reads and answers the init message
node.run(PingHandler())
```

Both streams are optional. When they are left out, the node uses `sys.stdin`
and `sys.stdout`.

- `Message` has the fields `src`, `dst` and `body`. On the wire, `dst` is
  written as `dest`. `Body` has `id` (the wire's `msg_id`), `in_reply_to` and
  `payload`. The payload is a dict of the other body fields, and it must
  include `type`. `to_dict` and `from_dict` convert to and from the wire form.
- `Node.reply(incoming, payload)` answers a message. `Node.send_to(dst, payload)`
  starts a new message. `Node.send(msg)` writes a finished `Message`. Message
  ids are numbered from 1, and the node assigns them itself.
- `Node.id()` and `Node.node_ids()` return what the `init` message said.
- `Node.run(handler)` returns once the input is exhausted and every message
  received so far has been handled.
- Malformed traffic raises `gossipy.node.ProtocolError`.

To act on events that do not come from the network, such as timers, call
`Node.register_command_queue(q)` with any object that has a blocking `get()`,
and put commands on it. Each command goes to `Handler.handle_command`, on the
same thread that handles messages. By default, `handle_command` raises
`ProtocolError`.

## Limits

Nodes keep all of their state in memory, and nothing is saved between runs.
The package has no nodes for Maelstrom's other workloads, such as counters,
logs or key-value stores. It also does not send a message and then wait for
its reply.