"""Console session: the object a host shell talks to."""

from __future__ import annotations

from livecon.config.settings import ConsoleSettings
from livecon.introspect._complete import Introspector
from livecon.introspect._protocols import LiveObjectGraph
from livecon.model.result import EvaluationResult

from ._environment import Environment
from ._evaluator import Evaluator
from ._store import VariableStore


class ConsoleSession:
    """One interactive debugging session over a live object graph.

    Variables set with ``%name = ...`` persist for the session's lifetime;
    nothing else survives between commands.

    Parameters
    ----------
    evaluator : Evaluator
        Runs commands.
    graph : LiveObjectGraph
        Resolves ``#path`` references.
    store : VariableStore | None
        Session variables (a fresh store if omitted).
    introspector : Introspector | None
        Autocomplete engine.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        graph: LiveObjectGraph,
        store: VariableStore | None = None,
        introspector: Introspector | None = None,
    ) -> None:
        self.evaluator = evaluator
        self.graph = graph
        self.store = store if store is not None else VariableStore()
        self.introspector = introspector or Introspector()

    @property
    def settings(self) -> ConsoleSettings:
        return self.evaluator.settings

    @property
    def variables(self) -> VariableStore:
        return self.store

    def environment(self) -> Environment:
        return Environment(self.store, self.graph)

    def evaluate(self, command: str) -> EvaluationResult:
        return self.evaluator.evaluate(command, self.environment())

    def complete(self, partial: str) -> list[str]:
        return self.introspector.complete(partial, self.graph)

    def render(self, command: str, result: EvaluationResult) -> str:
        """Transcript entry for *command* and its result."""
        return f">>> {command}\n{result.render(self.settings.failure_header)}"
