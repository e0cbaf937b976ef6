"""Tests for single-use execution contexts and the shared snapshot."""

import gc

import pytest
from structlog.testing import capture_logs

from livecon.evaluate._context import (
    ExecutionContext,
    UnitCompileError,
    UnitInvocationError,
    expression_unit,
    resident_unit_count,
    statement_unit,
)
from livecon.evaluate._snapshot import SharedSnapshot


def run_unit(snapshot, source, env=None, convert=None):
    with ExecutionContext(snapshot) as ctx:
        ctx.compile(source)
        return ctx.invoke(env, convert=convert)


# ---------------------------------------------------------------------------
# Unit sources
# ---------------------------------------------------------------------------

class TestUnitSources:
    def test_expression_unit_layout(self):
        source = expression_unit("1 + 1")
        assert source.text.splitlines()[source.command_line - 1] == "1 + 1"
        assert source.command_column == 0

    def test_statement_unit_layout(self):
        source = statement_unit("x = 1")
        assert source.text.splitlines()[source.command_line - 1] == "    x = 1"
        assert source.command_column == 4

    def test_statement_unit_multiline(self):
        source = statement_unit("x = 1\ny = 2")
        assert "    x = 1\n    y = 2\n" in source.text


# ---------------------------------------------------------------------------
# Compile and invoke
# ---------------------------------------------------------------------------

class TestCompileInvoke:
    def test_expression_value(self, snapshot):
        assert run_unit(snapshot, expression_unit("1 + 1")) == 2

    def test_expression_with_trailing_comment(self, snapshot):
        assert run_unit(snapshot, expression_unit("3  # three")) == 3

    def test_statement_returns_none(self, snapshot):
        assert run_unit(snapshot, statement_unit("x = 1")) is None

    def test_env_is_passed_as_d(self, snapshot):
        assert run_unit(snapshot, expression_unit("D * 2"), env=21) == 42

    def test_convert_applied(self, snapshot):
        assert run_unit(snapshot, expression_unit("7"), convert=str) == "7"

    def test_snapshot_module_visible(self, snapshot):
        assert run_unit(snapshot, expression_unit("math.sqrt(16)")) == 4.0

    def test_syntax_error(self, snapshot):
        with pytest.raises(UnitCompileError, match=r"\[SyntaxError\]") as info:
            run_unit(snapshot, expression_unit("1 +"))
        assert len(info.value.errors) == 1

    def test_syntax_error_column_relative_to_command(self, snapshot):
        with pytest.raises(UnitCompileError, match=r"\(column \d+\)"):
            run_unit(snapshot, statement_unit("x = = 1"))

    def test_null_byte_is_compile_error(self, snapshot):
        with pytest.raises(UnitCompileError):
            run_unit(snapshot, expression_unit("1\x00"))

    def test_runtime_error_wrapped_once(self, snapshot):
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, expression_unit("1 / 0"))
        assert isinstance(info.value.inner, ZeroDivisionError)
        assert info.value.inner.__traceback__ is None

    def test_convert_error_wrapped(self, snapshot):
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, expression_unit("'x'"), convert=int)
        assert isinstance(info.value.inner, ValueError)

    def test_system_exit_wrapped(self, snapshot):
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, statement_unit("raise SystemExit(3)"))
        assert isinstance(info.value.inner, SystemExit)

    def test_generator_exit_wrapped(self, snapshot):
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, statement_unit("raise GeneratorExit"))
        assert isinstance(info.value.inner, GeneratorExit)

    def test_exception_group_wrapped(self, snapshot):
        unit = statement_unit("raise BaseExceptionGroup('many', [SystemExit(1), ValueError()])")
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, unit)
        group = info.value.inner
        assert isinstance(group, BaseExceptionGroup)
        assert all(e.__traceback__ is None for e in group.exceptions)

    def test_keyboard_interrupt_propagates(self, snapshot):
        with pytest.raises(KeyboardInterrupt):
            run_unit(snapshot, statement_unit("raise KeyboardInterrupt"))

    def test_invoke_without_compile(self, snapshot):
        with ExecutionContext(snapshot) as ctx:
            with pytest.raises(RuntimeError, match="no compiled unit"):
                ctx.invoke(None)

    def test_invoke_only_once(self, snapshot):
        with ExecutionContext(snapshot) as ctx:
            ctx.compile(expression_unit("1"))
            ctx.invoke(None)
            with pytest.raises(RuntimeError):
                ctx.invoke(None)

    def test_compile_only_once(self, snapshot):
        with ExecutionContext(snapshot) as ctx:
            ctx.compile(expression_unit("1"))
            with pytest.raises(RuntimeError, match="already holds"):
                ctx.compile(expression_unit("2"))


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------

class TestIsolation:
    def test_host_names_not_visible(self, snapshot):
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, expression_unit("SharedSnapshot"))
        assert isinstance(info.value.inner, NameError)

    def test_import_blocked_by_default(self, snapshot):
        with pytest.raises(UnitInvocationError) as info:
            run_unit(snapshot, statement_unit("import os"))
        assert isinstance(info.value.inner, ImportError)

    def test_import_allowed(self):
        snapshot = SharedSnapshot.capture(allow_imports=True)
        run_unit(snapshot, statement_unit("import os"))

    def test_builtins_mutation_does_not_leak(self, snapshot):
        run_unit(snapshot, statement_unit("__builtins__['len'] = None"))
        assert run_unit(snapshot, expression_unit("len('ab')")) == 2
        assert snapshot.builtins["len"] is len

    def test_globals_do_not_survive(self, snapshot):
        run_unit(snapshot, statement_unit("global leftover; leftover = 1"))
        with pytest.raises(UnitInvocationError):
            run_unit(snapshot, expression_unit("leftover"))


class TestSnapshot:
    def test_capture_modules(self):
        snapshot = SharedSnapshot.capture(["math", "json"])
        assert set(snapshot.modules) == {"math", "json"}
        assert "math" in snapshot

    def test_dotted_module_bound_by_top_name(self):
        snapshot = SharedSnapshot.capture(["os.path"])
        assert "os" in snapshot.modules

    def test_import_hook_dropped(self):
        assert "__import__" not in SharedSnapshot.capture().builtins
        assert "__import__" in SharedSnapshot.capture(allow_imports=True).builtins

    def test_snapshot_is_read_only(self, snapshot):
        with pytest.raises(TypeError):
            snapshot.builtins["len"] = None

    def test_new_namespace_is_fresh(self, snapshot):
        first = snapshot.new_namespace()
        second = snapshot.new_namespace()
        assert first is not second
        assert first["__builtins__"] is not second["__builtins__"]
        assert first["math"] is second["math"]


# ---------------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------------

class TestTeardown:
    def test_unit_resident_only_inside_context(self, snapshot):
        before = resident_unit_count()
        with ExecutionContext(snapshot) as ctx:
            ctx.compile(expression_unit("1"))
            assert resident_unit_count() == before + 1
        assert resident_unit_count() == before

    def test_released_after_runtime_error(self, snapshot):
        before = resident_unit_count()
        with pytest.raises(UnitInvocationError):
            run_unit(snapshot, expression_unit("1 / 0"))
        assert resident_unit_count() == before
        assert ExecutionContext.active() is None

    def test_released_after_compile_error(self, snapshot):
        with pytest.raises(UnitCompileError):
            run_unit(snapshot, expression_unit("1 +"))
        assert ExecutionContext.active() is None

    def test_one_unit_at_a_time(self, snapshot):
        with ExecutionContext(snapshot):
            with pytest.raises(RuntimeError, match="still alive"):
                with ExecutionContext(snapshot):
                    pass
        assert ExecutionContext.active() is None

    def test_leaked_unit_is_logged(self, snapshot):
        keep = []
        source = statement_unit("D.append((lambda: 0).__globals__['__unit__'])")
        with capture_logs() as logs:
            run_unit(snapshot, source, env=keep)
        assert any(e["event"] == "Execution unit was not reclaimed" for e in logs)
        assert resident_unit_count() >= 1

        keep.clear()
        gc.collect()
        assert resident_unit_count() == 0

    def test_teardown_without_collection(self, snapshot):
        with ExecutionContext(snapshot, collect_garbage=False) as ctx:
            ctx.compile(expression_unit("1"))
            ctx.invoke(None)
        assert resident_unit_count() == 0
