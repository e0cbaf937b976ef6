"""Console settings: env vars and code defaults in one object.

Priority chain (highest to lowest):
  1. Init kwargs: passed by the embedding host
  2. Env vars: ``LIVECON_*`` prefix
  3. Code defaults
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from livecon.model.result import DEFAULT_FAILURE_HEADER


class ConsoleSettings(BaseSettings):
    """Settings for one console session.

    Attributes:
        void_text: Value shown for commands that ran as statements.
        null_text: Display form of ``None``.
        failure_header: First line of a failed result's transcript entry.
        snapshot_modules: Modules importable by name inside commands,
            captured once when the session starts.
        allow_imports: Keep ``__import__`` in the snapshot builtins so
            commands may use ``import`` statements.
        collect_garbage: Run a collection pass after each unit teardown
            and verify the unit was reclaimed.
        merge_diagnostics: When both attempts fail, append the
            statement-mode diagnostic to the expression-mode one.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIVECON_",
        frozen=True,
        extra="ignore",
    )

    void_text: str = "(void)"
    null_text: str = "null"
    failure_header: str = DEFAULT_FAILURE_HEADER
    snapshot_modules: list[str] = Field(default_factory=lambda: ["math"])
    allow_imports: bool = False
    collect_garbage: bool = True
    merge_diagnostics: bool = False
