"""Fixed set of names visible to generated execution units.

Captured once when a session starts and only read afterwards, so every
unit of a session resolves the same builtins and modules.
"""

from __future__ import annotations

import builtins
import importlib
from collections.abc import Iterable, Mapping
from types import MappingProxyType, ModuleType

import structlog

logger = structlog.get_logger(__name__)

_IMPORT_HOOK = "__import__"


class SharedSnapshot:
    """Read-only view of the builtins and modules units may reference.

    Parameters
    ----------
    builtin_names : Mapping[str, object]
        Builtins exposed as ``__builtins__`` of each unit.
    modules : Mapping[str, ModuleType]
        Module objects bound as globals of each unit.
    """

    __slots__ = ("_builtins", "_modules")

    def __init__(
        self,
        builtin_names: Mapping[str, object],
        modules: Mapping[str, ModuleType] | None = None,
    ) -> None:
        self._builtins = MappingProxyType(dict(builtin_names))
        self._modules = MappingProxyType(dict(modules or {}))

    @classmethod
    def capture(
        cls,
        module_names: Iterable[str] = (),
        *,
        allow_imports: bool = False,
    ) -> SharedSnapshot:
        """Snapshot the interpreter's builtins and import *module_names*.

        ``__import__`` is dropped unless *allow_imports* is set, which
        makes ``import`` statements inside commands fail to resolve.
        """
        names = dict(vars(builtins))
        if not allow_imports:
            names.pop(_IMPORT_HOOK, None)

        modules: dict[str, ModuleType] = {}
        for module_name in module_names:
            module = importlib.import_module(module_name)
            # Bind dotted modules under their top-level name, like ``import a.b``
            top = module_name.partition(".")[0]
            modules[top] = importlib.import_module(top) if top != module_name else module

        logger.debug(
            "Captured shared snapshot",
            builtins=len(names),
            modules=sorted(modules),
        )
        return cls(names, modules)

    @property
    def builtins(self) -> Mapping[str, object]:
        return self._builtins

    @property
    def modules(self) -> Mapping[str, ModuleType]:
        return self._modules

    def new_namespace(self) -> dict[str, object]:
        """Fresh globals dict for one unit, seeded from the snapshot.

        Each unit gets its own copies so nothing a command rebinds leaks
        into the next unit.
        """
        namespace: dict[str, object] = dict(self._modules)
        namespace["__builtins__"] = dict(self._builtins)
        namespace["__name__"] = "__livecon_unit__"
        return namespace

    def __contains__(self, name: object) -> bool:
        return name in self._builtins or name in self._modules
