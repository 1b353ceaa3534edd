# SPDX-License-Identifier: Apache-2.0
"""
Patch and Hook records.

A Patch stands in for one function slot (``target.function_name``) and keeps
the hooks registered on it in registration order. It owns the snapshot of the
original function and the dispatcher installed in the slot.
"""

import enum
import functools
import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

from hookpatch.logger import init_logger

if TYPE_CHECKING:
    from hookpatch.patch.hook_registry import PatchRegistry

logger = init_logger(__name__)


class HookPhase(str, enum.Enum):
    BEFORE = "before"
    INSTEAD = "instead"
    AFTER = "after"


class SlotKind(enum.Enum):
    # callable stored as is, never bound (builtins, classes, partials)
    PLAIN = "plain"
    # function on a class, bound to the instance
    METHOD = "method"
    CLASS = "classmethod"
    STATIC = "staticmethod"


def read_slot(target: Any, function_name: str) -> Any:
    """Return the raw object stored in the slot, without descriptor binding
    for classes."""
    if isinstance(target, type):
        return inspect.getattr_static(target, function_name)
    return getattr(target, function_name)


def slot_kind(target: Any, raw: Any) -> Optional[SlotKind]:
    if not isinstance(target, type):
        return SlotKind.PLAIN if callable(raw) else None
    if isinstance(raw, staticmethod):
        return SlotKind.STATIC
    if isinstance(raw, classmethod):
        return SlotKind.CLASS
    if not callable(raw):
        return None
    if hasattr(type(raw), "__get__"):
        return SlotKind.METHOD
    return SlotKind.PLAIN


def _has_own_slot(target: Any, function_name: str) -> bool:
    try:
        return function_name in vars(target)
    except TypeError:
        # no __dict__ (__slots__ or builtins), treat the slot as our own
        return True


@dataclass(eq=False)
class Hook:
    """One interception registered on a Patch."""

    id: int
    caller: str
    phase: HookPhase
    callback: Callable[..., Any]
    patch: "Patch" = field(repr=False)
    active: bool = True

    def unpatch(self) -> None:
        """Remove this hook. Calling it again is a no-op."""
        if not self.active:
            return
        self.patch.remove_hook(self.id, self.phase)


class Patch:

    def __init__(
        self,
        registry: "PatchRegistry",
        target: Any,
        function_name: str,
        name: str,
    ):
        self.registry = registry
        self.target = target
        self.function_name = function_name
        self.name = name

        raw = read_slot(target, function_name)
        kind = slot_kind(target, raw)
        if kind is None:
            raise TypeError(f"{name} is not a patchable function slot")
        self.kind = kind
        self.raw_original = raw
        self.had_own_slot = _has_own_slot(target, function_name)
        if kind in (SlotKind.STATIC, SlotKind.CLASS):
            self.original_function = raw.__func__
        else:
            self.original_function = raw

        self.proxy_function: Optional[Callable[..., Any]] = None
        self.installed: Any = None
        self.counter = 0
        self.hooks: list[Hook] = []

    def __repr__(self) -> str:
        return f"<Patch {self.name} hooks={len(self.hooks)}>"

    @property
    def binds_receiver(self) -> bool:
        return self.kind in (SlotKind.METHOD, SlotKind.CLASS)

    def split_receiver(self, args: tuple) -> tuple[Any, tuple]:
        if self.binds_receiver:
            return (args[0], args[1:]) if args else (None, args)
        if isinstance(self.target, type):
            return None, args
        # module or instance slot, the call was made through the target
        return self.target, args

    def call_original(self, receiver: Any, args, kwargs: dict) -> Any:
        if self.binds_receiver and receiver is not None:
            return self.original_function(receiver, *args, **kwargs)
        return self.original_function(*args, **kwargs)

    def bind_original(self, receiver: Any) -> Callable[..., Any]:
        if self.binds_receiver and receiver is not None:
            return functools.partial(self.original_function, receiver)
        return self.original_function

    def install(self, proxy_function: Callable[..., Any]) -> None:
        """Put ``proxy_function`` in the slot, wrapped like the original."""
        # a plain callable on a class must not start binding the instance
        unbound = self.kind is SlotKind.STATIC or (
            self.kind is SlotKind.PLAIN and isinstance(self.target, type)
        )
        if unbound:
            installed: Any = staticmethod(proxy_function)
        elif self.kind is SlotKind.CLASS:
            installed = classmethod(proxy_function)
        else:
            installed = proxy_function
        setattr(self.target, self.function_name, installed)
        self.proxy_function = proxy_function
        self.installed = installed

    def is_installed(self) -> bool:
        if self.installed is None:
            return False
        try:
            current = read_slot(self.target, self.function_name)
        except AttributeError:
            return False
        return current is self.installed

    def revert(self) -> None:
        """Restore the slot to the original and drop every hook."""
        if self.had_own_slot:
            setattr(self.target, self.function_name, self.raw_original)
        elif self.is_installed():
            # the original was inherited, uncover it again
            delattr(self.target, self.function_name)
        self.proxy_function = None
        self.installed = None
        for hook in self.hooks:
            hook.active = False
        self.hooks = []

    def add_hook(
        self, caller: str, phase: HookPhase, callback: Callable[..., Any]
    ) -> Hook:
        hook = Hook(
            id=self.counter, caller=caller, phase=phase, callback=callback, patch=self
        )
        self.hooks.append(hook)
        self.counter += 1
        return hook

    def hooks_for(self, phase: HookPhase) -> tuple[Hook, ...]:
        # snapshot, hooks may unpatch themselves while we iterate
        return tuple(hook for hook in self.hooks if hook.phase is phase)

    def remove_hook(self, hook_id: int, phase: HookPhase) -> None:
        for index, hook in enumerate(self.hooks):
            if hook.id == hook_id and hook.phase is phase:
                break
        else:
            logger.debug(
                "No %s hook %d on %s, nothing to remove", phase.value, hook_id, self.name
            )
            return
        del self.hooks[index]
        hook.active = False
        logger.debug(
            "Removed %s hook of %s for %r", phase.value, self.name, hook.caller
        )
        if not self.hooks:
            self.registry.revert_patch(self)
