"""livecon evaluator: run console commands against live objects.

Entry point::

    from livecon.evaluate import open_console

    session = open_console(scene_root)
    session.evaluate("%hp = #Player.health")   # value "100"
    session.evaluate("#Player.health = %hp - 10")  # value "(void)"
    session.complete("#Player.he")                 # ['health']
"""

from __future__ import annotations

from typing import Any

from livecon.config.settings import ConsoleSettings
from livecon.introspect._graph import ObjectGraph
from livecon.introspect._protocols import LiveObjectGraph
from livecon.model.result import EvaluationResult, FailureKind

from ._context import (
    ExecutionContext,
    UnitCompileError,
    UnitInvocationError,
    resident_unit_count,
)
from ._environment import Environment, NodeNotFoundError
from ._evaluator import Evaluator
from ._preprocess import CommandPreprocessor
from ._session import ConsoleSession
from ._snapshot import SharedSnapshot
from ._store import VariableStore


def open_console(
    root: Any,
    *,
    settings: ConsoleSettings | None = None,
    graph: LiveObjectGraph | None = None,
) -> ConsoleSession:
    """Create a console session over a live object graph.

    Parameters
    ----------
    root
        Root of the live object graph.  Ignored when *graph* is given;
        may itself be a ``LiveObjectGraph``.
    settings
        Session settings (defaults read from ``LIVECON_*`` env vars).
    graph
        Custom path resolver.

    Returns
    -------
    ConsoleSession
        A session with an empty variable store.
    """
    settings = settings or ConsoleSettings()
    if graph is None:
        graph = root if isinstance(root, LiveObjectGraph) else ObjectGraph(root)

    snapshot = SharedSnapshot.capture(
        settings.snapshot_modules,
        allow_imports=settings.allow_imports,
    )
    return ConsoleSession(Evaluator(snapshot, settings), graph)


__all__ = [
    "open_console",
    "ConsoleSession",
    "ConsoleSettings",
    "CommandPreprocessor",
    "Environment",
    "EvaluationResult",
    "Evaluator",
    "ExecutionContext",
    "FailureKind",
    "NodeNotFoundError",
    "SharedSnapshot",
    "UnitCompileError",
    "UnitInvocationError",
    "VariableStore",
    "resident_unit_count",
]
