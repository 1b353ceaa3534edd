# SPDX-License-Identifier: Apache-2.0

import os
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    HOOKPATCH_CONFIGURE_LOGGING: int = 1
    HOOKPATCH_LOGGING_LEVEL: str = "INFO"
    HOOKPATCH_LOGGING_PREFIX: str = ""
    HOOKPATCH_FORCE_PATCH: bool = True
    HOOKPATCH_TRACE_DISPATCH: bool = False
    HOOKPATCH_REVERT_AT_EXIT: bool = True

environment_variables: dict[str, Callable[[], Any]] = {
    # ================== Logging Env Vars ==================
    # If set to 0, hookpatch will not configure its own logger and
    # records are left to whatever the host application configured
    "HOOKPATCH_CONFIGURE_LOGGING": lambda: int(
        os.getenv("HOOKPATCH_CONFIGURE_LOGGING", "1")
    ),
    # Level of the "hookpatch" logger
    "HOOKPATCH_LOGGING_LEVEL": lambda: os.getenv(
        "HOOKPATCH_LOGGING_LEVEL", "INFO"
    ).upper(),
    # Prepended to every log line
    "HOOKPATCH_LOGGING_PREFIX": lambda: os.getenv("HOOKPATCH_LOGGING_PREFIX", ""),
    # If set to 0, registering a hook on a missing function fails instead
    # of installing a no-op placeholder first
    "HOOKPATCH_FORCE_PATCH": lambda: bool(
        int(os.getenv("HOOKPATCH_FORCE_PATCH", "1"))
    ),
    # If set, every call through a patched function is logged at DEBUG level
    "HOOKPATCH_TRACE_DISPATCH": lambda: bool(
        int(os.getenv("HOOKPATCH_TRACE_DISPATCH", "0"))
    ),
    # If set, the default registry reverts all live patches at interpreter exit
    "HOOKPATCH_REVERT_AT_EXIT": lambda: bool(
        int(os.getenv("HOOKPATCH_REVERT_AT_EXIT", "1"))
    ),
}

# end-env-vars-definition


def __getattr__(name: str):
    # lazy evaluation of environment variables
    if name in environment_variables:
        return environment_variables[name]()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return list(environment_variables.keys())


def is_set(name: str):
    """Check if an environment variable is explicitly set."""
    if name in environment_variables:
        return name in os.environ
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
