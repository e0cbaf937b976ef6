"""Default path walker over a tree of host objects."""

from __future__ import annotations

import re
from collections.abc import Mapping

from ._protocols import ChildProvider

_SEPARATOR = "/"

# ``#a/b/c`` live-object shorthand
NODE_REFERENCE_RE = re.compile(r"#([A-Za-z0-9_/]+)")


def last_node_reference(text: str) -> tuple[str, str] | None:
    """Return ``(path, tail)`` for the last ``#path`` in *text*.

    *tail* is everything after the reference with leading dots removed,
    e.g. ``"#Player.Na"`` -> ``("Player", "Na")``.
    """
    last = None
    for last in NODE_REFERENCE_RE.finditer(text):
        pass
    if last is None:
        return None
    return last.group(1), text[last.end():].lstrip(".")


def split_path(path: str) -> list[str]:
    """Split a ``a/b/c`` path into segments, ignoring empty ones."""
    return [seg for seg in path.split(_SEPARATOR) if seg]


def child_of(node: object, name: str) -> object | None:
    """Look up one path segment on *node*.

    ``get_child()`` wins for ``ChildProvider`` nodes, then mapping keys,
    then attributes.
    """
    if isinstance(node, ChildProvider):
        return node.get_child(name)
    if isinstance(node, Mapping):
        return node.get(name)
    return getattr(node, name, None)


class ObjectGraph:
    """Resolves paths by walking from *root* one segment at a time.

    An empty path resolves to the root itself.
    """

    __slots__ = ("root",)

    def __init__(self, root: object) -> None:
        self.root = root

    def resolve(self, path: str) -> object | None:
        node = self.root
        for segment in split_path(path):
            node = child_of(node, segment)
            if node is None:
                return None
        return node

    def __repr__(self) -> str:
        return f"ObjectGraph(root={type(self.root).__name__})"
