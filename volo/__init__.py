"""RPC building blocks: call context, service discovery, load balancing, networking and buffered reading."""

__version__ = "0.1.0"