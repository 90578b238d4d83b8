"""Weighted random load balancing."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Optional, Sequence

from volo.context import Endpoint
from volo.discovery import Change, Discover, Instance
from volo.loadbalance.base import LoadBalance
from volo.net.address import Address


def pick_one(weight: int, instances: Sequence[Instance]) -> Optional[tuple[int, Instance]]:
    """Pick an instance at random in proportion to its weight.

    ``weight`` is the sum of the weights of ``instances``. Returns the offset
    and the instance, or None when nothing can be picked.
    """
    if weight == 0:
        return None
    remaining = random.randrange(weight)
    for offset, instance in enumerate(instances):
        remaining -= instance.weight
        if remaining <= 0:
            return offset, instance
    return None


@dataclass(frozen=True)
class _WeightedInstances:
    instances: tuple[Instance, ...]
    sum_of_weights: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "sum_of_weights", sum(instance.weight for instance in self.instances)
        )

    @classmethod
    def from_instances(cls, instances: Iterable[Instance]) -> _WeightedInstances:
        return cls(tuple(instances))


class InstancePicker:
    """Yields the addresses of distinct instances in weighted random order."""

    def __init__(self, shared: _WeightedInstances) -> None:
        self._shared = shared
        self._sum_of_weights = shared.sum_of_weights
        self._owned: Optional[list[Instance]] = None
        self._last_pick: Optional[tuple[int, Instance]] = None
        self._exhausted = False

    def __iter__(self) -> InstancePicker:
        return self

    def __next__(self) -> Address:
        if self._exhausted or not self._shared.instances:
            raise StopIteration
        if self._last_pick is None:
            picked = pick_one(self._sum_of_weights, self._shared.instances)
        else:
            if self._owned is None:
                self._owned = list(self._shared.instances)
            last_offset, last_instance = self._last_pick
            self._sum_of_weights -= last_instance.weight
            del self._owned[last_offset]
            picked = pick_one(self._sum_of_weights, self._owned)
        if picked is None:
            self._exhausted = True
            raise StopIteration
        self._last_pick = picked
        return picked[1].address

    def __repr__(self) -> str:
        return (
            f"InstancePicker(instances={len(self._shared.instances)}, "
            f"sum_of_weights={self._sum_of_weights})"
        )


class WeightedRandomBalance(LoadBalance):
    """Caches discovery results per key and picks instances by weight."""

    def __init__(self) -> None:
        self._router: dict[Hashable, _WeightedInstances] = {}

    async def get_picker(self, endpoint: Endpoint, discover: Discover) -> InstancePicker:
        key = discover.key(endpoint)
        weighted = self._router.get(key)
        if weighted is None:
            instances = await discover.discover(endpoint)
            weighted = self._router.setdefault(
                key, _WeightedInstances.from_instances(instances)
            )
        return InstancePicker(weighted)

    def rebalance(self, change: Change) -> None:
        """Replace the cached instances of ``change.key`` if that key is cached."""
        if change.key in self._router:
            self._router[change.key] = _WeightedInstances.from_instances(change.all)

    def __repr__(self) -> str:
        return f"WeightedRandomBalance(keys={list(self._router)!r})"