# volo

Building blocks for RPC clients and servers on top of `asyncio`:

- **Call context** (`volo.context`): `Role`, `Endpoint`, `RpcInfo` and `RpcCx`
  describe who is calling whom, which method, and with what configuration.
  Endpoints carry tags and contexts carry extensions in a `TypeMap`, which
  holds at most one value of each type, keyed by that type.
- **Service discovery** (`volo.discovery`): `Instance`, `Change`, the abstract
  `Discover` interface, `StaticDiscover` over a fixed list of instances,
  `DummyDiscover` that finds nothing, and `diff_address` for comparing two
  discovery results.
- **Load balancing** (`volo.loadbalance`): the `LoadBalance` interface and
  `LbConfig` / `CustomLayer` in `volo.loadbalance.base`;
  `WeightedRandomBalance`, `InstancePicker` and `pick_one` in
  `volo.loadbalance.random`; `LoadBalanceService`, `LoadBalanceLayer` and
  `LoadBalanceError` in `volo.loadbalance.layer`.
- **Networking** (`volo.net`): `IpAddress` and `UnixAddress` in
  `volo.net.address`, `Conn` and `ConnInfo` in `volo.net.conn`,
  `MakeConnection` and `DialConfig` in `volo.net.dial`, `Incoming` and
  `make_incoming` in `volo.net.incoming`, and `probe()` of the host's IP stack
  in `volo.net.probe`.
- **Buffered reading** (`volo.buf_reader`): `BufReader` over any object with an
  async `read(n)`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

Python 3.10 or later is required; the package has no runtime dependencies.
Unix socket addresses need a platform with unix domain sockets.

## Addresses

```python
from volo.net.address import IpAddress

addr = IpAddress.parse("127.0.0.1:8000")
print(addr)                    # 127.0.0.1:8000
v6 = IpAddress.parse("[::1]:9000")
wildcard = IpAddress.parse("0.0.0.0:8080").favor_dual_stack()
```

`IpAddress.parse` accepts `a.b.c.d:port` and `[v6]:port` and raises
`ValueError` otherwise. `favor_dual_stack` turns an unspecified address into
`[::]` with the same port when `should_favor_ipv6()` is true: the host has no
IPv4 stack, or IPv6 sockets accept IPv4-mapped addresses. The result of
`volo.net.probe.probe()` is computed once and cached. A `UnixAddress` prints as
`-`. `address_from_sockname` builds an address from a `getsockname` /
`getpeername` value and raises `OSError` for an unnamed unix socket.

## Call context

```python
from volo.context import Endpoint, Role, RpcCx, RpcInfo

callee = Endpoint("echo")
callee.insert("eu-west")           # stored under its type, str
callee.get(str)                    # "eu-west"

info = RpcInfo(Role.CLIENT, callee=callee, method="Echo")
cx = RpcCx(info, inner=some_object)
```

`RpcInfo.with_role(role)` creates call information with nothing but a role.
Attributes not found on an `RpcCx` are looked up on its `inner` object.

## Discovery and load balancing

```python
import asyncio

from volo.context import Endpoint
from volo.discovery import StaticDiscover
from volo.loadbalance.random import WeightedRandomBalance


async def main():
    discover = StaticDiscover.from_addresses(["127.0.0.1:8000", "127.0.0.2:9000"])
    balance = WeightedRandomBalance()
    picker = await balance.get_picker(Endpoint("echo"), discover)
    for address in picker:
        print(address)         # each instance once, in weighted random order


asyncio.run(main())
```

`StaticDiscover.from_addresses` accepts `IpAddress` objects or strings and
gives every instance weight 1 and no tags. `StaticDiscover` and
`DummyDiscover` use the same key for every endpoint and publish no changes
(`watch()` returns `None`).

`WeightedRandomBalance` caches discovery results per key. Its `rebalance`
replaces the cached list for `change.key` with `change.all`, but only if that
key is already cached.

`diff_address(key, prev, next)` compares two instance lists by address only and
returns a `Change` (with `updated` always empty) together with a flag that is
false when nothing was added or removed.

## Wrapping a service

`LoadBalanceLayer(discover, load_balance, retry_count)` wraps an inner service
with `layer(inner)`, giving a `LoadBalanceService`. The inner service may be an
object with a `call(cx, req)` method or a callable taking `(cx, req)`; either
may return an awaitable. `LoadBalanceService.call(cx, req)`:

- raises `LoadBalanceError` if `cx.rpc_info.callee` is `None`;
- calls the inner service directly if the callee already has an address;
- otherwise asks the load balancer for a picker (a failure there is raised as
  `LoadBalanceError` chained to the cause), sets the callee address to each
  picked instance in turn and calls the inner service, trying at most
  `retry + 1` instances and logging each failure;
- raises `LoadBalanceError` if every attempt failed.

When a `LoadBalanceService` is created inside a running event loop it starts a
task running `watch_changes()`, which passes every change published by the
discoverer's `watch()` to the load balancer's `rebalance`.

`LbConfig(load_balance, discover)` starts with a retry count of 0; the
immutable `with_load_balance`, `with_discover` and `with_retry_count` return
adjusted copies, and `make()` builds a `LoadBalanceLayer`.
`CustomLayer(layer).make()` returns the layer it was given.

## Connections

```python
import asyncio

from volo.net.address import IpAddress
from volo.net.dial import DialConfig, MakeConnection
from volo.net.incoming import make_incoming


async def main():
    async with await make_incoming(IpAddress.parse("127.0.0.1:0")) as incoming:
        dialer = MakeConnection(DialConfig(connect_timeout=1.0, read_write_timeout=5.0))
        client = await dialer.make_connection(incoming.local_address)
        server = await incoming.__anext__()
        await client.write(b"ping")
        print(await server.read(4))
        await client.close()
        await server.close()


asyncio.run(main())
```

- `MakeConnection(cfg).make_connection(address)` opens a `Conn` to an
  `IpAddress` or `UnixAddress`. Timeouts in `DialConfig` are in seconds; an
  expired connect timeout raises `TimeoutError`, and `read_write_timeout`
  becomes the connection's `timeout` for each read, write and flush.
- `make_incoming(address)` binds a listener and returns an `Incoming`, an
  async iterator of accepted `Conn` objects; passing an `Incoming` returns it
  unchanged. `close()` stops listening and closes connections not yet taken.
- A `Conn` offers `read`, `write`, `flush`, `close` and `split` (the asyncio
  reader and writer), can be used with `async with`, and records the peer
  address in `info.peer_addr`. TCP connections have Nagle's algorithm
  disabled.

## Buffered reading

`BufReader(inner, capacity=8192)` buffers an async reader. `fill_buf()` reads
only when nothing is buffered; `fill_buf_at_least(n)` reads until `n` bytes are
buffered, compacting first if needed, and raises `EOFError` if the stream ends
early or `ValueError` if `n` does not fit below the capacity. `consume`,
`compact`, `clear`, `buffer()` and `read(n)` complete the interface; `read`
bypasses the buffer for large reads when it is empty.

## What this package does not do

It provides the pieces an RPC framework is built from, not the framework: there
is no wire protocol or message codec, no ready-made RPC client or server, no
code generation from service definitions, and no command-line tool. Discovery
against a registry must be supplied by your own `Discover` implementation.