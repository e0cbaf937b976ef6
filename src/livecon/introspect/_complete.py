"""Member-name autocomplete for ``#path.Member`` shorthand."""

from __future__ import annotations

import inspect
import re

import structlog

from ._graph import ObjectGraph, last_node_reference
from ._protocols import LiveObjectGraph, MemberProvider

logger = structlog.get_logger(__name__)

_DUNDER_RE = re.compile(r"^__.*__$")


def is_hidden_member(name: str) -> bool:
    """True for special (dunder) members."""
    return bool(_DUNDER_RE.match(name))


def _is_invocable(owner: object, name: str) -> bool:
    # Look at the class attribute first so properties are never evaluated.
    for klass in type(owner).__mro__:
        if name in vars(klass):
            attr = vars(klass)[name]
            if isinstance(attr, property):
                return False
            if isinstance(attr, (staticmethod, classmethod)):
                return True
            return callable(attr) or inspect.isroutine(attr)
    try:
        return callable(inspect.getattr_static(owner, name))
    except AttributeError:
        return False


def enumerate_members(obj: object) -> list[str]:
    """Member names of *obj*: data members first, then invocables.

    Covers instance, class and inherited members.  ``MemberProvider``
    objects supply their own names instead.
    """
    if isinstance(obj, MemberProvider):
        return [str(name) for name in obj.__console_members__()]

    names = dir(obj)
    data = [n for n in names if not _is_invocable(obj, n)]
    invocable = [n for n in names if _is_invocable(obj, n)]
    return data + invocable


class Introspector:
    """Lists member names of the last live object referenced in a command."""

    def complete(self, partial: str, root: object) -> list[str]:
        """Names on the object ``#path`` in *partial* that start with its tail.

        *root* is either a ``LiveObjectGraph`` or a plain root object.
        Unresolvable paths yield an empty list; nothing is raised.
        """
        reference = last_node_reference(partial)
        if reference is None:
            return []
        path, tail = reference

        graph = root if isinstance(root, LiveObjectGraph) else ObjectGraph(root)
        try:
            obj = graph.resolve(path)
            if obj is None:
                return []
            members = enumerate_members(obj)
        except Exception as exc:
            logger.debug("Autocomplete failed", path=path, error=repr(exc))
            return []

        unique = list(dict.fromkeys(n for n in members if not is_hidden_member(n)))
        matches = [n for n in unique if n.startswith(tail)]
        return sorted(matches)


def format_suggestions(names: list[str]) -> str:
    """Single-line form of a suggestion list, as shown in the transcript."""
    return " ".join(names)
