"""A runtime for nodes that exchange JSON messages over standard streams, with echo, unique-id and broadcast nodes."""

__version__ = "0.1.0"