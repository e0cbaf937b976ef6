"""The ``D`` object handed to every execution unit."""

from __future__ import annotations

from livecon.introspect._protocols import LiveObjectGraph

from ._store import VariableStore


class NodeNotFoundError(LookupError):
    """A ``#path`` reference did not resolve to a live object."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No live object at path '{path}'")


class Environment:
    """Execution environment of one evaluation.

    Attributes
    ----------
    vars : VariableStore
        Session variables (``%name``).
    graph : LiveObjectGraph
        Live object graph the ``#path`` shorthand resolves against.
    """

    __slots__ = ("vars", "graph")

    def __init__(self, vars: VariableStore, graph: LiveObjectGraph) -> None:
        self.vars = vars
        self.graph = graph

    def node(self, path: str) -> object:
        """Resolve *path* against the graph or raise ``NodeNotFoundError``."""
        obj = self.graph.resolve(path)
        if obj is None:
            raise NodeNotFoundError(path)
        return obj
