"""Evaluation results returned to the host shell."""

from __future__ import annotations

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator


DEFAULT_FAILURE_HEADER = "Terminal Execution Failed:"


class FailureKind(str, Enum):
    COMPILE = "compile"
    RUNTIME = "runtime"


class EvaluationResult(BaseModel):
    """Outcome of one ``evaluate`` call.

    ``value`` is the display string of the command's value (``"(void)"``
    for statements) and is ``None`` exactly when ``success`` is False.
    ``failure`` records how the expression-mode attempt failed.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    value: str | None = None
    diagnostics: str = ""
    failure: FailureKind | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if self.success and self.value is None:
            raise ValueError("A successful result must carry a value")
        if not self.success and self.value is not None:
            raise ValueError("A failed result must not carry a value")
        return self

    @classmethod
    def ok(cls, value: str) -> EvaluationResult:
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, diagnostics: str, failure: FailureKind | None = None) -> EvaluationResult:
        return cls(success=False, diagnostics=diagnostics, failure=failure)

    def render(self, failure_header: str = DEFAULT_FAILURE_HEADER) -> str:
        """Text shown in the console transcript for this result."""
        if self.success:
            return self.value
        return f"{failure_header}\n{self.diagnostics}"

    def __str__(self) -> str:
        return self.render()
