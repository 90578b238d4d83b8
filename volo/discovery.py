"""Service discovery: instances, change events and simple discoverers."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import AsyncIterator, Generic, Hashable, Iterable, Optional, TypeVar, Union

from volo.context import Endpoint
from volo.net.address import Address, IpAddress

K = TypeVar("K", bound=Hashable)


@dataclass
class Instance:
    """One instance of a target service."""

    address: Address
    weight: int
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class Change(Generic[K]):
    """The difference between two discovery results for one key."""

    key: K
    all: list[Instance]
    added: list[Instance] = field(default_factory=list)
    updated: list[Instance] = field(default_factory=list)
    removed: list[Instance] = field(default_factory=list)


def diff_address(
    key: K, prev: Iterable[Instance], next: Iterable[Instance]
) -> tuple[Change[K], bool]:
    """Compare two results by address only.

    ``updated`` is always empty. The flag is False when nothing was added or
    removed, in which case the change should not be dispatched.
    """
    prev = list(prev)
    next = list(next)
    prev_addresses = {instance.address for instance in prev}
    next_addresses = {instance.address for instance in next}
    added = [instance for instance in next if instance.address not in prev_addresses]
    removed = [instance for instance in prev if instance.address not in next_addresses]
    changed = bool(added or removed)
    return Change(key=key, all=next, added=added, updated=[], removed=removed), changed


class Discover(abc.ABC):
    """Finds the instances serving an endpoint."""

    @abc.abstractmethod
    async def discover(self, endpoint: Endpoint) -> list[Instance]:
        """Return the instances for ``endpoint``."""

    @abc.abstractmethod
    def key(self, endpoint: Endpoint) -> Hashable:
        """Return a cache key identifying the group of instances of ``endpoint``."""

    @abc.abstractmethod
    def watch(self) -> Optional[AsyncIterator[Change]]:
        """Return an async iterator of changes, or None if changes are not published."""


class _FixedDiscover(Discover):
    """A discoverer whose every endpoint shares one cache key and which never
    publishes changes."""

    _group_key: Hashable = None
    _changes: Optional[AsyncIterator[Change]] = None

    def key(self, endpoint: Endpoint) -> Hashable:
        return self._group_key

    def watch(self) -> Optional[AsyncIterator[Change]]:
        return self._changes


class StaticDiscover(_FixedDiscover):
    """Always returns the same list of instances."""

    def __init__(self, instances: Iterable[Instance]) -> None:
        self.instances = list(instances)

    @classmethod
    def from_addresses(cls, addresses: Iterable[Union[IpAddress, str]]) -> StaticDiscover:
        """Build instances of weight 1 and no tags from socket addresses."""
        instances = [
            Instance(
                address=address if isinstance(address, IpAddress) else IpAddress.parse(address),
                weight=1,
            )
            for address in addresses
        ]
        return cls(instances)

    async def discover(self, endpoint: Endpoint) -> list[Instance]:
        return list(self.instances)

    def key(self, endpoint: Endpoint) -> Hashable:
        """All endpoints share one group, so the key is constant."""
        return super().key(endpoint)

    def watch(self) -> Optional[AsyncIterator[Change]]:
        """The instance list is fixed, so no changes are published."""
        return super().watch()

    def __repr__(self) -> str:
        return f"StaticDiscover({self.instances!r})"


class DummyDiscover(_FixedDiscover):
    """Always returns an empty list of instances."""

    async def discover(self, endpoint: Endpoint) -> list[Instance]:
        return []

    def key(self, endpoint: Endpoint) -> Hashable:
        """All endpoints share one group, so the key is constant."""
        return super().key(endpoint)

    def watch(self) -> Optional[AsyncIterator[Change]]:
        """Nothing is ever discovered, so no changes are published."""
        return super().watch()

    def __repr__(self) -> str:
        return "DummyDiscover()"