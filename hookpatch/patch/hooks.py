# SPDX-License-Identifier: Apache-2.0
"""
PEP 302 MetaPathFinder + Loader that applies hooks to modules which are not
imported yet.

``patch_on_import`` registers right away when the module is already loaded.
Otherwise the request is queued and the finder wraps the module's loader so
the hooks are registered as soon as the module body has executed.
"""

import importlib.abc
import importlib.machinery
import sys
import types
from typing import Any, Callable, List, Optional

from hookpatch.logger import init_logger
from hookpatch.patch.hook_patch import HookPhase
from hookpatch.patch.hook_registry import PatchRegistry, get_registry
from hookpatch.patch.hook_resolver import get_nested_attr

logger = init_logger(__name__)

_PENDING: dict[str, list["DeferredPatch"]] = {}
_PATCH_FINDER: Optional["PatchFinder"] = None


class DeferredPatch:
    """Handle for a hook requested on a module that may not be loaded yet.

    Calling it cancels the request if it is still queued, or unpatches the
    hook if it was applied.
    """

    def __init__(
        self,
        caller: str,
        module_name: str,
        path: str,
        callback: Callable[..., Any],
        options: dict[str, Any],
        registry: PatchRegistry,
    ):
        self.caller = caller
        self.module_name = module_name
        self.path = path
        self.callback = callback
        self.options = options
        self.registry = registry
        self.unpatch: Optional[Callable[[], None]] = None
        self.cancelled = False

    def __repr__(self) -> str:
        state = "applied" if self.unpatch else "pending"
        return f"<DeferredPatch {self.module_name}:{self.path} ({state})>"

    def apply(self, module: types.ModuleType) -> bool:
        owner_path, _, function_name = self.path.rpartition(".")
        try:
            target = get_nested_attr(module, owner_path) if owner_path else module
        except AttributeError:
            logger.error(
                "Cannot apply hook of %r: %s has no %s",
                self.caller,
                self.module_name,
                owner_path,
            )
            return False
        options = dict(self.options)
        if not options.get("display_name"):
            options["display_name"] = (
                f"{self.module_name}.{owner_path}" if owner_path else self.module_name
            )
        self.unpatch = self.registry.push_child_patch(
            self.caller, target, function_name, self.callback, **options
        )
        if self.unpatch is None:
            logger.error(
                "Cannot apply hook of %r to %s:%s",
                self.caller,
                self.module_name,
                self.path,
            )
        return self.unpatch is not None

    def __call__(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self.unpatch is not None:
            self.unpatch()
            return
        queued = _PENDING.get(self.module_name, [])
        if self in queued:
            queued.remove(self)
        if not queued:
            _PENDING.pop(self.module_name, None)


def apply_pending_patches(module: types.ModuleType, module_name: str) -> None:
    """Apply every queued request for ``module_name``."""
    for deferred in _PENDING.pop(module_name, []):
        deferred.apply(module)


class PatchLoader(importlib.abc.Loader):
    """Loader applying queued hooks after the module executed."""

    def __init__(self, original_loader: importlib.abc.Loader, module_name: str):
        self.original_loader = original_loader
        self.module_name = module_name

    def create_module(self, spec):
        return self.original_loader.create_module(spec)

    def exec_module(self, module: types.ModuleType):
        self.original_loader.exec_module(module)
        apply_pending_patches(module, self.module_name)


class PatchFinder(importlib.abc.MetaPathFinder):
    """Finder for modules that have queued hooks."""

    def find_spec(
        self,
        fullname: str,
        path: Optional[List[str]] = None,
        target: Optional[types.ModuleType] = None,
    ) -> Optional[importlib.machinery.ModuleSpec]:
        if fullname not in _PENDING:
            return None
        for finder in sys.meta_path:
            if finder is self or not hasattr(finder, "find_spec"):
                continue
            spec = finder.find_spec(fullname, path, target)
            if spec is not None:
                break
        else:
            return None
        if spec.loader is not None and hasattr(spec.loader, "exec_module"):
            spec.loader = PatchLoader(spec.loader, fullname)
        return spec


def install_hooks() -> None:
    """Install the import finder (idempotent)."""
    global _PATCH_FINDER
    if _PATCH_FINDER is not None and _PATCH_FINDER in sys.meta_path:
        return
    _PATCH_FINDER = PatchFinder()
    sys.meta_path.insert(0, _PATCH_FINDER)
    logger.debug("Import hooks installed")


def uninstall_hooks() -> None:
    """Remove the import finder. Queued requests stay queued."""
    global _PATCH_FINDER
    if _PATCH_FINDER is not None and _PATCH_FINDER in sys.meta_path:
        sys.meta_path.remove(_PATCH_FINDER)
    _PATCH_FINDER = None
    logger.debug("Import hooks uninstalled")


def pending_patches(module_name: Optional[str] = None) -> list[DeferredPatch]:
    if module_name is not None:
        return list(_PENDING.get(module_name, []))
    return [deferred for queued in _PENDING.values() for deferred in queued]


def patch_on_import(
    caller: str,
    module_name: str,
    path: str,
    callback: Callable[..., Any],
    *,
    phase: Any = HookPhase.AFTER,
    registry: Optional[PatchRegistry] = None,
    **options: Any,
) -> DeferredPatch:
    """Hook ``module_name``'s ``path`` (``"func"`` or ``"Class.method"``) now,
    or as soon as the module is imported.

    Hook application failures at import time are logged, not raised.
    """
    if not callable(callback):
        raise TypeError(f"callback for {module_name}:{path} must be callable")
    options["phase"] = HookPhase(phase)
    deferred = DeferredPatch(
        caller, module_name, path, callback, options, registry or get_registry()
    )
    module = sys.modules.get(module_name)
    if module is not None:
        deferred.apply(module)
        return deferred
    _PENDING.setdefault(module_name, []).append(deferred)
    install_hooks()
    logger.debug(
        "Queued %s hook of %r for %s:%s",
        options["phase"].value,
        caller,
        module_name,
        path,
    )
    return deferred
