# SPDX-License-Identifier: Apache-2.0
"""
Resolution of patch-target descriptors.

A descriptor is one of:
- a concrete object (module, class, instance, function) which is used as is;
- a label such as ``"json"`` or ``"json.decoder:JSONDecoder"`` looked up in a
  named-module namespace (``sys.modules`` unless the host supplies another);
- a list or tuple of attribute names, answered by a module index that finds
  the one object exposing all of them.
"""

import sys
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Protocol, Sequence

from hookpatch.logger import init_logger

logger = init_logger(__name__)

_MISSING = object()


class ModuleIndex(Protocol):
    """Lookup service finding an object by the attribute names it exposes."""

    def find_by_props(self, props: Sequence[str]) -> Optional[Any]: ...


def _has_all(obj: Any, props: Sequence[str]) -> bool:
    for prop in props:
        try:
            if getattr(obj, prop, _MISSING) is _MISSING:
                return False
        except Exception:
            # properties and lazy module attributes may raise anything
            return False
    return True


class SysModulesIndex:
    """Searches loaded modules, then their top-level members."""

    def __init__(self, modules: Optional[Mapping[str, Any]] = None):
        self._modules = modules

    def _candidates(self) -> Iterable[Any]:
        modules = sys.modules if self._modules is None else self._modules
        # snapshot, imports may happen while we look around
        loaded = [m for m in list(modules.values()) if m is not None]
        yield from loaded
        for module in loaded:
            try:
                members = list(vars(module).values())
            except TypeError:
                continue
            yield from members

    def find_by_props(self, props: Sequence[str]) -> Optional[Any]:
        """Return the first object exposing every name in ``props``.

        Modules are tried before their members, in ``sys.modules`` order. The
        first match wins even if later objects match too, so pass enough
        names to single out the object you want.
        """
        if not props:
            return None
        for candidate in self._candidates():
            if _has_all(candidate, props):
                return candidate
        return None


def get_nested_attr(obj: Any, path: str) -> Any:
    """Follow a dotted attribute path such as ``"Class.method"``."""
    current = obj
    for part in path.split("."):
        current = getattr(current, part)
    return current


class ModuleResolver:
    """Maps a descriptor to the object whose function slot gets patched."""

    def __init__(
        self,
        namespace: Optional[Mapping[str, Any]] = None,
        module_index: Optional[ModuleIndex] = None,
    ):
        self.namespace = namespace
        self.module_index = module_index or SysModulesIndex()

    def _lookup_label(self, label: str) -> Optional[Any]:
        namespace = sys.modules if self.namespace is None else self.namespace
        name, _, path = label.partition(":")
        module = namespace.get(name)
        if module is None or not path:
            return module
        try:
            return get_nested_attr(module, path)
        except AttributeError:
            logger.debug("Label %r: %r has no attribute path %r", label, name, path)
            return None

    def resolve(self, descriptor: Any) -> Optional[Any]:
        if descriptor is None:
            return None
        if isinstance(descriptor, str):
            return self._lookup_label(descriptor)
        if isinstance(descriptor, (list, tuple)):
            if not all(isinstance(prop, str) for prop in descriptor):
                return None
            return self.module_index.find_by_props(descriptor)
        if isinstance(descriptor, (int, float, complex, bool, bytes)):
            return None
        return descriptor
