"""The load balancing interface and the configuration that builds a layer."""

from __future__ import annotations

import abc
import dataclasses
from dataclasses import dataclass
from typing import Any, Iterator

from volo.context import Endpoint
from volo.discovery import Change, Discover
from volo.net.address import Address


class LoadBalance(abc.ABC):
    """A load balancing policy."""

    @abc.abstractmethod
    async def get_picker(self, endpoint: Endpoint, discover: Discover) -> Iterator[Address]:
        """Return an iterator over the addresses to try for ``endpoint``."""

    @abc.abstractmethod
    def rebalance(self, change: Change) -> None:
        """React to a change published by the discoverer."""


@dataclass(frozen=True)
class LbConfig:
    """Load balancer, discoverer and retry count used to build a layer."""

    load_balance: Any
    discover: Any
    retry_count: int = 0

    def with_load_balance(self, load_balance: Any) -> LbConfig:
        return dataclasses.replace(self, load_balance=load_balance)

    def with_discover(self, discover: Any) -> LbConfig:
        return dataclasses.replace(self, discover=discover)

    def with_retry_count(self, count: int) -> LbConfig:
        """Set the number of retries a client makes."""
        return dataclasses.replace(self, retry_count=count)

    def make(self):
        from volo.loadbalance.layer import LoadBalanceLayer

        return LoadBalanceLayer(self.discover, self.load_balance, self.retry_count)


@dataclass(frozen=True)
class CustomLayer:
    """A ready-made layer used as is."""

    layer: Any

    def make(self) -> Any:
        return self.layer