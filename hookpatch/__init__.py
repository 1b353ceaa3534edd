# SPDX-License-Identifier: Apache-2.0
"""Let independent callers hook functions on shared objects and remove only
their own hooks later."""

from hookpatch.patch import (
    DeferredPatch,
    Hook,
    HookPhase,
    ModuleIndex,
    ModuleResolver,
    Patch,
    PatchRegistry,
    SysModulesIndex,
    after,
    before,
    get_patches_by_caller,
    get_registry,
    install_hooks,
    instead,
    patch_on_import,
    pending_patches,
    uninstall_hooks,
    unpatch_all,
)

try:
    from hookpatch._version import __version__
except ImportError:
    __version__ = "unknown"

__all__ = [
    "DeferredPatch",
    "Hook",
    "HookPhase",
    "ModuleIndex",
    "ModuleResolver",
    "Patch",
    "PatchRegistry",
    "SysModulesIndex",
    "__version__",
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
