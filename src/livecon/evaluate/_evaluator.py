"""Evaluator: shorthand expansion plus the expression/statement fallback.

Each command gets at most two single-use execution units:

1. expression mode -- the command's value is captured and displayed;
2. statement mode  -- run only if expression mode failed; yields ``(void)``.

Every failure becomes a diagnostic on the returned ``EvaluationResult``.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial

import structlog

from livecon.config.settings import ConsoleSettings
from livecon.model.result import EvaluationResult, FailureKind
from livecon.model.values import display_string

from ._context import (
    ExecutionContext,
    UnitCompileError,
    UnitInvocationError,
    UnitSource,
    expression_unit,
    statement_unit,
)
from ._environment import Environment
from ._preprocess import CommandPreprocessor
from ._snapshot import SharedSnapshot

logger = structlog.get_logger(__name__)


class _Attempt:
    """Outcome of one execution attempt."""

    __slots__ = ("value", "diagnostic", "failure")

    def __init__(
        self,
        value: str | None = None,
        diagnostic: str = "",
        failure: FailureKind | None = None,
    ) -> None:
        self.value = value
        self.diagnostic = diagnostic
        self.failure = failure

    @property
    def ok(self) -> bool:
        return self.failure is None


def runtime_diagnostic(error: BaseException) -> str:
    """``ERROR: <Kind>: <message>``, unwrapping one invocation wrapper."""
    if isinstance(error, UnitInvocationError):
        error = error.inner
    return f"ERROR: {type(error).__name__}: {error}"


class Evaluator:
    """Runs console commands against an ``Environment``.

    Parameters
    ----------
    snapshot : SharedSnapshot
        Names visible to generated units; captured once per session.
    settings : ConsoleSettings | None
        Display texts and teardown options.
    preprocessor : CommandPreprocessor | None
        Shorthand expander.
    """

    def __init__(
        self,
        snapshot: SharedSnapshot,
        settings: ConsoleSettings | None = None,
        preprocessor: CommandPreprocessor | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.settings = settings or ConsoleSettings()
        self.preprocessor = preprocessor or CommandPreprocessor()

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def evaluate(self, raw: str, env: Environment) -> EvaluationResult:
        """Expand and run *raw*; never raises."""
        command = self.preprocessor.expand(raw.strip())
        if not command:
            return EvaluationResult.ok(self.settings.void_text)

        expression = self._attempt(
            expression_unit(self._as_expression(command)),
            env,
            convert=partial(display_string, null_text=self.settings.null_text),
        )
        if expression.ok:
            return EvaluationResult.ok(expression.value)

        statement = self._attempt(statement_unit(command), env)
        if statement.ok:
            return EvaluationResult.ok(self.settings.void_text)

        diagnostics = expression.diagnostic
        if self.settings.merge_diagnostics:
            diagnostics = f"{diagnostics}\n{statement.diagnostic}"
        return EvaluationResult.failed(diagnostics, expression.failure)

    # -----------------------------------------------------------------------
    # Attempts
    # -----------------------------------------------------------------------

    @staticmethod
    def _as_expression(command: str) -> str:
        # Tolerate statement terminators typed out of habit: ``1 + 1;;``
        return command.rstrip("; \t\n")

    def _attempt(
        self,
        source: UnitSource,
        env: Environment,
        convert: Callable[[object], object] | None = None,
    ) -> _Attempt:
        with ExecutionContext(
            self.snapshot, collect_garbage=self.settings.collect_garbage,
        ) as ctx:
            try:
                ctx.compile(source)
            except UnitCompileError as exc:
                logger.debug("Unit failed to compile", unit=ctx.name, errors=exc.errors)
                return _Attempt(diagnostic=str(exc), failure=FailureKind.COMPILE)

            try:
                value = ctx.invoke(env, convert=convert)
            except UnitInvocationError as exc:
                diagnostic = runtime_diagnostic(exc)
                logger.debug("Unit raised", unit=ctx.name, error=diagnostic)
                return _Attempt(diagnostic=diagnostic, failure=FailureKind.RUNTIME)

        return _Attempt(value=value)
