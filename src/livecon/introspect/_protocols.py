"""Capability protocols for live objects and graph providers.

These ``@runtime_checkable`` protocols let host objects opt into path
walking and member listing without inheriting from livecon classes.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class LiveObjectGraph(Protocol):
    """Resolves slash-separated paths to live objects."""

    def resolve(self, path: str) -> object | None: ...


@runtime_checkable
class ChildProvider(Protocol):
    """A live object whose children are looked up by name."""

    def get_child(self, name: str) -> object | None: ...


@runtime_checkable
class MemberProvider(Protocol):
    """A live object that lists its own member names for autocomplete."""

    def __console_members__(self) -> Iterable[str]: ...
