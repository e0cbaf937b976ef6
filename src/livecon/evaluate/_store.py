"""Session variable store backing the ``%name`` shorthand."""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from livecon.model.values import ValueInfo, display_string, kind_of

logger = structlog.get_logger(__name__)


class VariableStore:
    """Name -> untyped value mapping shared by every command of a session.

    Values are stored and returned as-is; last write wins.  Commands see
    the store as ``D.vars``.
    """

    def __init__(self) -> None:
        self._data: dict[str, object] = {}

    def set(self, name: str, value: object) -> object:
        """Store *value* under *name* and return it, so assignment chains."""
        self._data[name] = value
        return value

    def get(self, name: str) -> object:
        """Return the value stored under *name*.

        Unknown names log a warning and yield ``None``; the enclosing
        command keeps running.
        """
        try:
            return self._data[name]
        except KeyError:
            logger.warning(f"Variable '%{name}' not found.", variable=name)
            return None

    def names(self) -> list[str]:
        return sorted(self._data)

    def describe(self, name: str) -> ValueInfo | None:
        """Tagged description of a stored variable, or None if unknown."""
        if name not in self._data:
            return None
        value = self._data[name]
        return ValueInfo(
            name=name,
            kind=kind_of(value),
            type_name=type(value).__name__,
            display=display_string(value),
        )

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"VariableStore({self.names()!r})"
