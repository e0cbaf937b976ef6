"""Single-use execution contexts for generated code units.

An ``ExecutionContext`` compiles one snippet into a code unit with a
single entry point ``__unit__(D)``, invokes it once, and tears it down
on exit -- whether compilation, invocation, or neither failed::

    with ExecutionContext(snapshot) as ctx:
        ctx.compile(expression_unit("1 + 1"))
        ctx.invoke(env)

Unit globals come from the ``SharedSnapshot`` only, so a unit cannot see
the host's modules or livecon internals.
"""

from __future__ import annotations

import gc
import itertools
import textwrap
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

import structlog

from ._preprocess import ENV_NAME
from ._snapshot import SharedSnapshot

logger = structlog.get_logger(__name__)

ENTRY_POINT = "__unit__"
_VALUE_NAME = "__value__"
_INDENT = "    "

_unit_ids = itertools.count(1)

# Entry functions of units that are still reachable.
_resident_units: weakref.WeakSet = weakref.WeakSet()


def resident_unit_count() -> int:
    """Number of generated units not yet reclaimed."""
    return len(_resident_units)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class UnitCompileError(Exception):
    """Generated unit failed to compile.  ``errors`` holds one line per error."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("\n".join(errors))


class UnitInvocationError(Exception):
    """Wraps the exception that escaped a unit's entry point."""

    def __init__(self, inner: BaseException) -> None:
        self.inner = inner
        super().__init__(f"{type(inner).__name__}: {inner}")


# ---------------------------------------------------------------------------
# Unit sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnitSource:
    """Generated module text plus where the user's command sits in it."""

    text: str
    command_line: int
    command_column: int


def expression_unit(command: str) -> UnitSource:
    """Entry point returning the value of *command*.

    The command sits on its own line inside the parentheses so a trailing
    comment cannot swallow the closing one.
    """
    text = (
        f"def {ENTRY_POINT}({ENV_NAME}):\n"
        f"{_INDENT}{_VALUE_NAME} = (\n"
        f"{command}\n"
        f"{_INDENT})\n"
        f"{_INDENT}return {_VALUE_NAME}\n"
    )
    return UnitSource(text=text, command_line=3, command_column=0)


def statement_unit(command: str) -> UnitSource:
    """Entry point running *command* as a statement sequence."""
    body = textwrap.indent(textwrap.dedent(command), _INDENT)
    text = (
        f"def {ENTRY_POINT}({ENV_NAME}):\n"
        f"{body}\n"
        f"{_INDENT}return None\n"
    )
    return UnitSource(text=text, command_line=2, command_column=len(_INDENT))


def _format_syntax_error(exc: SyntaxError, source: UnitSource) -> str:
    message = exc.msg or "invalid syntax"
    if exc.lineno == source.command_line and exc.offset is not None:
        column = max(exc.offset - source.command_column, 1)
        return f"[{type(exc).__name__}] {message} (column {column})"
    return f"[{type(exc).__name__}] {message}"


def _strip_tracebacks(exc: BaseException) -> None:
    """Drop tracebacks along the exception chain; they pin unit frames."""
    pending = [exc]
    seen: set[int] = set()
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        current.__traceback__ = None
        pending.append(current.__cause__)
        pending.append(current.__context__)
        if isinstance(current, BaseExceptionGroup):
            pending.extend(current.exceptions)


# ---------------------------------------------------------------------------
# ExecutionContext
# ---------------------------------------------------------------------------

class ExecutionContext:
    """Owns exactly one generated unit for the duration of a ``with`` block.

    Parameters
    ----------
    snapshot : SharedSnapshot
        Names visible to the unit.
    collect_garbage : bool
        Run ``gc.collect()`` on teardown and verify the unit is gone.
    """

    # At most one unit is alive at a time.
    _active: ClassVar[ExecutionContext | None] = None

    def __init__(self, snapshot: SharedSnapshot, *, collect_garbage: bool = True) -> None:
        self.snapshot = snapshot
        self.collect_garbage = collect_garbage
        self.name = f"<livecon-unit-{next(_unit_ids)}>"
        self._namespace: dict[str, object] | None = None
        self._entry: Callable[..., object] | None = None
        self._entry_ref: weakref.ref | None = None

    def __enter__(self) -> ExecutionContext:
        if ExecutionContext._active is not None:
            raise RuntimeError(
                f"Cannot open {self.name}: {ExecutionContext._active.name} is still alive"
            )
        ExecutionContext._active = self
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # -----------------------------------------------------------------------
    # Compile / invoke
    # -----------------------------------------------------------------------

    def compile(self, source: UnitSource) -> None:
        """Compile *source* and bind its entry point.

        Raises ``UnitCompileError`` with the compiler's messages.
        """
        if self._entry is not None:
            raise RuntimeError(f"{self.name} already holds a compiled unit")

        try:
            code = compile(source.text, self.name, "exec", dont_inherit=True)
        except SyntaxError as exc:
            raise UnitCompileError([_format_syntax_error(exc, source)]) from None
        except (ValueError, OverflowError, RecursionError, MemoryError) as exc:
            raise UnitCompileError([f"[{type(exc).__name__}] {exc}"]) from None

        namespace = self.snapshot.new_namespace()
        # Module level only defines the entry function.
        exec(code, namespace)
        entry = namespace[ENTRY_POINT]

        self._namespace = namespace
        self._entry = entry
        self._entry_ref = weakref.ref(entry)
        _resident_units.add(entry)

    def invoke(self, env: object, convert: Callable[[object], object] | None = None) -> object:
        """Call the entry point once with *env*.

        *convert* is applied to the return value before the unit is left,
        so conversion failures count as invocation failures.  Anything
        escaping is wrapped in a ``UnitInvocationError``.
        """
        if self._entry is None:
            raise RuntimeError(f"{self.name} has no compiled unit")

        entry, self._entry = self._entry, None
        try:
            result = entry(env)
            return convert(result) if convert is not None else result
        except KeyboardInterrupt:
            raise
        except BaseException as exc:
            _strip_tracebacks(exc)
            raise UnitInvocationError(exc) from None
        finally:
            del entry

    # -----------------------------------------------------------------------
    # Teardown
    # -----------------------------------------------------------------------

    def teardown(self) -> None:
        """Release the unit.  Failures are logged, never raised."""
        try:
            if self._namespace is not None:
                self._namespace.clear()
            self._namespace = None
            self._entry = None

            if self.collect_garbage and self._entry_ref is not None:
                gc.collect()
                if self._entry_ref() is not None:
                    logger.warning("Execution unit was not reclaimed", unit=self.name)
        except Exception as exc:
            logger.warning("Execution unit teardown failed", unit=self.name, error=repr(exc))
        finally:
            self._entry_ref = None
            if ExecutionContext._active is self:
                ExecutionContext._active = None

    @classmethod
    def active(cls) -> ExecutionContext | None:
        return cls._active
