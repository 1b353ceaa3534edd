# SPDX-License-Identifier: Apache-2.0
"""
Patch/hook dispatch engine.

- hook_resolver: turn a descriptor (object, label, attribute names) into a target.
- hook_patch: Patch and Hook records for one patched function slot.
- hook_dispatch: the override installed in the slot, running the hook phases.
- hook_registry: PatchRegistry, find-or-create of patches and caller-scoped removal.
- hooks: import-time finder applying hooks to modules loaded later.
"""

from .hook_patch import Hook, HookPhase, Patch
from .hook_registry import (
    PatchRegistry,
    after,
    before,
    get_patches_by_caller,
    get_registry,
    instead,
    unpatch_all,
)
from .hook_resolver import ModuleIndex, ModuleResolver, SysModulesIndex
from .hooks import (
    DeferredPatch,
    install_hooks,
    patch_on_import,
    pending_patches,
    uninstall_hooks,
)

# public API
__all__ = [
    "DeferredPatch",
    "Hook",
    "HookPhase",
    "ModuleIndex",
    "ModuleResolver",
    "Patch",
    "PatchRegistry",
    "SysModulesIndex",
    "after",
    "before",
    "get_patches_by_caller",
    "get_registry",
    "install_hooks",
    "instead",
    "patch_on_import",
    "pending_patches",
    "uninstall_hooks",
    "unpatch_all",
]
