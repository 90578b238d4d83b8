import pytest

from volo.context import Endpoint
from volo.discovery import Change, Discover, Instance, StaticDiscover
from volo.loadbalance.random import InstancePicker, WeightedRandomBalance, pick_one
from volo.net.address import IpAddress


def _endpoint():
    return Endpoint(service_name="")


class CountingDiscover(Discover):
    def __init__(self, instances):
        self.instances = list(instances)
        self.calls = 0

    async def discover(self, endpoint):
        self.calls += 1
        return list(self.instances)

    def key(self, endpoint):
        return endpoint.service_name

    def watch(self):
        return None


@pytest.mark.asyncio
async def test_weighted_random():
    discover = StaticDiscover.from_addresses(["127.0.0.1:8000", "127.0.0.2:9000"])
    lb = WeightedRandomBalance()
    picker = await lb.get_picker(_endpoint(), discover)
    everything = list(picker)
    assert len(everything) == 2
    assert everything[0] != everything[1]


@pytest.mark.asyncio
async def test_picker_yields_each_instance_once():
    addresses = [f"10.0.0.{n}:80" for n in range(1, 6)]
    discover = StaticDiscover.from_addresses(addresses)
    lb = WeightedRandomBalance()
    for _ in range(20):
        picked = list(await lb.get_picker(_endpoint(), discover))
        assert sorted(str(a) for a in picked) == sorted(addresses)


def test_pick_one_zero_weight():
    assert pick_one(0, [Instance(IpAddress.parse("127.0.0.1:1"), 1)]) is None


def test_pick_one_single_instance():
    instance = Instance(IpAddress.parse("127.0.0.1:1"), 3)
    for _ in range(10):
        assert pick_one(3, [instance]) == (0, instance)


def test_pick_one_returns_member():
    instances = [Instance(IpAddress.parse(f"127.0.0.{n}:1"), n) for n in range(1, 4)]
    for _ in range(50):
        offset, instance = pick_one(6, instances)
        assert instances[offset] is instance


def test_zero_weight_instance_is_never_picked():
    first = Instance(IpAddress.parse("127.0.0.1:1"), 1)
    second = Instance(IpAddress.parse("127.0.0.2:1"), 0)
    from volo.loadbalance.random import _WeightedInstances

    for _ in range(10):
        picker = InstancePicker(_WeightedInstances.from_instances([first, second]))
        assert list(picker) == [first.address]


@pytest.mark.asyncio
async def test_empty_discover_gives_empty_picker():
    lb = WeightedRandomBalance()
    picker = await lb.get_picker(_endpoint(), StaticDiscover([]))
    assert list(picker) == []


@pytest.mark.asyncio
async def test_results_are_cached_per_key():
    discover = CountingDiscover([Instance(IpAddress.parse("127.0.0.1:1"), 1)])
    lb = WeightedRandomBalance()
    await lb.get_picker(Endpoint("a"), discover)
    await lb.get_picker(Endpoint("a"), discover)
    assert discover.calls == 1
    await lb.get_picker(Endpoint("b"), discover)
    assert discover.calls == 2


@pytest.mark.asyncio
async def test_rebalance_replaces_cached_instances():
    old = Instance(IpAddress.parse("127.0.0.1:1"), 1)
    new = Instance(IpAddress.parse("127.0.0.2:2"), 1)
    discover = CountingDiscover([old])
    lb = WeightedRandomBalance()
    assert list(await lb.get_picker(Endpoint("a"), discover)) == [old.address]
    lb.rebalance(Change(key="a", all=[new]))
    assert list(await lb.get_picker(Endpoint("a"), discover)) == [new.address]
    assert discover.calls == 1


@pytest.mark.asyncio
async def test_rebalance_ignores_unknown_key():
    old = Instance(IpAddress.parse("127.0.0.1:1"), 1)
    new = Instance(IpAddress.parse("127.0.0.2:2"), 1)
    discover = CountingDiscover([old])
    lb = WeightedRandomBalance()
    lb.rebalance(Change(key="a", all=[new]))
    assert list(await lb.get_picker(Endpoint("a"), discover)) == [old.address]
    assert discover.calls == 1


def test_exhausted_picker_stays_exhausted():
    from volo.loadbalance.random import _WeightedInstances

    instance = Instance(IpAddress.parse("127.0.0.1:1"), 1)
    picker = InstancePicker(_WeightedInstances.from_instances([instance]))
    assert next(picker) == instance.address
    with pytest.raises(StopIteration):
        next(picker)
    with pytest.raises(StopIteration):
        next(picker)