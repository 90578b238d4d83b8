"""A service wrapper that resolves the callee through discovery and retries."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Optional

from volo.discovery import Discover

logger = logging.getLogger(__name__)


class LoadBalanceError(Exception):
    """Raised when no instance could serve a call."""


class LoadBalanceService:
    """Picks callee addresses from a load balancer and calls the inner service.

    The inner service is an object with a ``call(cx, req)`` method or a
    callable taking ``(cx, req)``; either may return an awaitable. ``retry``
    extra attempts are made on other instances after a failure.
    """

    def __init__(self, discover: Discover, load_balance: Any, service: Any, retry: int) -> None:
        self.discover = discover
        self.load_balance = load_balance
        self.service = service
        self.retry = retry
        self._watcher: Optional[asyncio.Task] = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._watcher = loop.create_task(self.watch_changes())

    async def watch_changes(self) -> None:
        """Feed every change published by the discoverer to the load balancer."""
        changes = self.discover.watch()
        if changes is None:
            return
        try:
            async for change in changes:
                self.load_balance.rebalance(change)
        except asyncio.CancelledError:
            raise
        except Exception as err:
            logger.warning("[VOLO] discovering subscription error %r", err)

    async def _call_inner(self, cx: Any, req: Any) -> Any:
        target = getattr(self.service, "call", self.service)
        result = target(cx, req)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def call(self, cx: Any, req: Any) -> Any:
        """Call the inner service on picked instances until one succeeds."""
        callee = cx.rpc_info.callee
        if callee is None:
            raise LoadBalanceError("load balance get empty endpoint")
        if callee.address is not None:
            return await self._call_inner(cx, req)

        try:
            picker = await self.load_balance.get_picker(callee, self.discover)
        except Exception as err:
            raise LoadBalanceError("discover instance error") from err

        call_count = 0
        for address in itertools.islice(picker, self.retry + 1):
            call_count += 1
            current = cx.rpc_info.callee
            if current is not None:
                current.address = address
            try:
                return await self._call_inner(cx, req)
            except Exception as err:
                logger.warning("[VOLO] call endpoint: %s error: %r", address, err)
        if call_count == 0:
            logger.warning("[VOLO] zero call count, call info: %r", cx.rpc_info)
        raise LoadBalanceError("load balance retry reaches end")

    def __repr__(self) -> str:
        return (
            f"LBService(discover={self.discover!r}, "
            f"load_balancer={self.load_balance!r})"
        )


@dataclass
class LoadBalanceLayer:
    """Wraps services in a ``LoadBalanceService``."""

    discover: Discover
    load_balance: Any
    retry_count: int = 0

    def layer(self, inner: Any) -> LoadBalanceService:
        return LoadBalanceService(self.discover, self.load_balance, inner, self.retry_count)