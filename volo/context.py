"""Per-call RPC context: roles, endpoints, call information and extensions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from volo.net.address import Address

T = TypeVar("T")
C = TypeVar("C")
I = TypeVar("I")


class Role(enum.Enum):
    CLIENT = "client"
    SERVER = "server"


class TypeMap:
    """A map holding at most one value of each type, keyed by that type."""

    def __init__(self) -> None:
        self._values: dict[type, Any] = {}

    def insert(self, value: Any) -> Any:
        """Store ``value`` under its type and return the value it replaced."""
        key = type(value)
        previous = self._values.get(key)
        self._values[key] = value
        return previous

    def get(self, tag_type: type[T]) -> Optional[T]:
        return self._values.get(tag_type)

    def contains(self, tag_type: type) -> bool:
        return tag_type in self._values

    def remove(self, tag_type: type[T]) -> Optional[T]:
        return self._values.pop(tag_type, None)

    def __contains__(self, tag_type: object) -> bool:
        return tag_type in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeMap):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"TypeMap({list(self._values.values())!r})"


@dataclass
class Endpoint:
    """Information about one side of a call; the service name drives discovery."""

    service_name: str
    address: Optional[Address] = None
    tags: TypeMap = field(default_factory=TypeMap)

    def insert(self, value: Any) -> None:
        self.tags.insert(value)

    def contains(self, tag_type: type) -> bool:
        return self.tags.contains(tag_type)

    def get(self, tag_type: type[T]) -> Optional[T]:
        return self.tags.get(tag_type)


@dataclass
class RpcInfo(Generic[C]):
    """Role, endpoints, method and configuration of one call."""

    role: Role
    caller: Optional[Endpoint] = None
    callee: Optional[Endpoint] = None
    method: Optional[str] = None
    config: Optional[C] = None

    @classmethod
    def with_role(cls, role: Role) -> RpcInfo[C]:
        return cls(role)


@dataclass
class RpcCx(Generic[I, C]):
    """Call context; unknown attributes are looked up on ``inner``."""

    rpc_info: RpcInfo[C]
    inner: I
    extensions: TypeMap = field(default_factory=TypeMap)

    def __getattr__(self, name: str) -> Any:
        if name in ("rpc_info", "inner", "extensions") or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self.inner, name)