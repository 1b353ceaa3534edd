# SPDX-License-Identifier: Apache-2.0
"""
Registry of live function patches.

A registry owns at most one Patch per (target object, function name). Several
callers can hook the same function without knowing about each other; every
registration returns its own removal handle, and ``unpatch_all(caller)``
removes everything one caller registered. When the last hook of a Patch goes
away the original function is put back and the Patch is forgotten.

Registration never raises for targets that are missing or cannot be patched,
it returns ``None`` so callers can probe whether a patch is possible.
"""

import atexit
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional, Union

import hookpatch.envs as envs
from hookpatch.logger import init_logger
from hookpatch.patch.hook_dispatch import make_override
from hookpatch.patch.hook_patch import Hook, HookPhase, Patch, read_slot, slot_kind
from hookpatch.patch.hook_resolver import ModuleIndex, ModuleResolver

logger = init_logger(__name__)

Unpatch = Callable[[], None]


def _noop(*args, **kwargs):
    pass


def _display_name(target: Any, descriptor: Any, display_name: Optional[str]) -> str:
    if display_name:
        return display_name
    if isinstance(descriptor, str):
        return descriptor
    for attr in ("display_name", "__qualname__", "__name__"):
        name = getattr(target, attr, None)
        if isinstance(name, str) and name:
            return name
    return type(target).__name__


class PatchRegistry:
    """Owns the patches made through it.

    ``namespace`` maps labels to modules (``sys.modules`` by default) and
    ``module_index`` answers attribute-name descriptors.
    """

    def __init__(
        self,
        namespace: Optional[Mapping[str, Any]] = None,
        module_index: Optional[ModuleIndex] = None,
    ):
        self.resolver = ModuleResolver(namespace, module_index)
        self._patches: dict[tuple[int, str], Patch] = {}

    def setup(self, namespace: Mapping[str, Any]) -> None:
        """Supply the named-module namespace used for label descriptors."""
        self.resolver.namespace = namespace

    @property
    def patches(self) -> list[Patch]:
        return list(self._patches.values())

    def get_patch(self, target: Any, function_name: str) -> Optional[Patch]:
        return self._patches.get((id(target), function_name))

    def get_patches_by_caller(self, caller: str) -> list[Hook]:
        """Returns all the hooks registered by ``caller`` across all patches."""
        if not caller:
            return []
        return [
            hook
            for patch in self.patches
            for hook in patch.hooks
            if hook.caller == caller
        ]

    def unpatch_all(self, patches: Union[str, Iterable[Any]]) -> None:
        """Unpatches every hook registered by a caller, or every handle given.

        ``patches`` is either a caller label, or an iterable of removal
        handles and/or Hooks.
        """
        if isinstance(patches, str):
            patches = self.get_patches_by_caller(patches)
        elif not isinstance(patches, Iterable):
            raise TypeError(
                f"unpatch_all expects a caller name or an iterable of "
                f"unpatch handles, got {type(patches).__name__}"
            )
        for patch in list(patches):
            if isinstance(patch, Hook):
                patch.unpatch()
            else:
                patch()

    def revert_patch(self, patch: Patch) -> None:
        key = (id(patch.target), patch.function_name)
        if self._patches.get(key) is not patch:
            return
        patch.revert()
        del self._patches[key]
        logger.debug("Reverted %s", patch.name)

    def revert_all(self) -> None:
        """Tear down every live patch, restoring all original functions."""
        for patch in self.patches:
            self.revert_patch(patch)

    def _make_patch(self, target: Any, function_name: str, name: str) -> Patch:
        patch = Patch(self, target, function_name, name)
        patch.install(make_override(patch))
        self._patches[(id(target), function_name)] = patch
        logger.debug("Patched %s", name)
        return patch

    def _repatch(self, patch: Patch) -> None:
        logger.warning(
            "%s was replaced from outside the patcher, reinstalling the override",
            patch.name,
        )
        patch.install(make_override(patch))

    def push_child_patch(
        self,
        caller: str,
        module_to_patch: Any,
        function_name: str,
        callback: Callable[..., Any],
        *,
        phase: Union[HookPhase, str] = HookPhase.AFTER,
        force_patch: Optional[bool] = None,
        display_name: Optional[str] = None,
    ) -> Optional[Unpatch]:
        """Hook ``function_name`` of the resolved target to run ``callback``
        before, instead of, or after the original.

        Returns a function with no arguments that removes this hook, or
        ``None`` when the target cannot be resolved or patched.
        """
        phase = HookPhase(phase)
        if not callable(callback):
            raise TypeError(f"callback for {function_name!r} must be callable")
        if force_patch is None:
            force_patch = envs.HOOKPATCH_FORCE_PATCH

        module = self.resolver.resolve(module_to_patch)
        if module is None:
            logger.debug(
                "Could not resolve %r, not patching %s", module_to_patch, function_name
            )
            return None

        if getattr(module, function_name, None) is None:
            if not force_patch:
                logger.debug("%r has no %s, not patching", module, function_name)
                return None
            try:
                setattr(module, function_name, _noop)
            except (AttributeError, TypeError):
                logger.debug("Cannot add %s to %r", function_name, module)
                return None
        if not callable(getattr(module, function_name)):
            logger.debug(
                "%s of %r is not callable, not patching", function_name, module
            )
            return None

        patch = self.get_patch(module, function_name)
        if patch is None:
            if slot_kind(module, read_slot(module, function_name)) is None:
                return None
            owner = _display_name(module, module_to_patch, display_name)
            name = f"{owner}.{function_name}"
            try:
                patch = self._make_patch(module, function_name, name)
            except (AttributeError, TypeError):
                logger.debug("Slot %s is read-only, not patching", name)
                return None
        elif not patch.is_installed():
            self._repatch(patch)

        hook = patch.add_hook(caller, phase, callback)
        logger.debug(
            "Added %s hook #%d to %s for %r", phase.value, hook.id, patch.name, caller
        )
        return hook.unpatch

    register = push_child_patch

    def before(
        self,
        caller: str,
        module_to_patch: Any,
        function_name: str,
        callback: Callable[..., Any],
        **options: Any,
    ) -> Optional[Unpatch]:
        """Runs ``callback(receiver, args, kwargs)`` before the original.

        ``args`` is a list and ``kwargs`` a dict; changing them changes what
        the original receives. The return value is ignored.
        """
        options["phase"] = HookPhase.BEFORE
        return self.push_child_patch(
            caller, module_to_patch, function_name, callback, **options
        )

    def instead(
        self,
        caller: str,
        module_to_patch: Any,
        function_name: str,
        callback: Callable[..., Any],
        **options: Any,
    ) -> Optional[Unpatch]:
        """Runs ``callback(receiver, args, kwargs, original)`` in place of the
        original, which is passed already bound to the receiver.

        A non-``None`` return becomes the result; with several instead hooks
        the last one returning something wins.
        """
        options["phase"] = HookPhase.INSTEAD
        return self.push_child_patch(
            caller, module_to_patch, function_name, callback, **options
        )

    def after(
        self,
        caller: str,
        module_to_patch: Any,
        function_name: str,
        callback: Callable[..., Any],
        **options: Any,
    ) -> Optional[Unpatch]:
        """Runs ``callback(receiver, args, kwargs, result)`` after the
        original. A non-``None`` return replaces the result."""
        options["phase"] = HookPhase.AFTER
        return self.push_child_patch(
            caller, module_to_patch, function_name, callback, **options
        )


_REGISTRY = PatchRegistry()


def get_registry() -> PatchRegistry:
    return _REGISTRY


def _revert_at_exit() -> None:
    if envs.HOOKPATCH_REVERT_AT_EXIT:
        _REGISTRY.revert_all()


atexit.register(_revert_at_exit)

before = _REGISTRY.before
instead = _REGISTRY.instead
after = _REGISTRY.after
unpatch_all = _REGISTRY.unpatch_all
get_patches_by_caller = _REGISTRY.get_patches_by_caller
