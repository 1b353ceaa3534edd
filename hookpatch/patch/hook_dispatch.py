# SPDX-License-Identifier: Apache-2.0
"""
The override installed in place of a patched function.

Every call fans out to the Patch's hooks in three phases:
``before`` hooks observe (and may mutate) the arguments, ``instead`` hooks
compute the result (the original runs when there are none), ``after`` hooks
observe or replace the result. A hook returning ``None`` leaves the working
result untouched. A failing hook is logged and skipped, it never reaches the
caller of the patched function.
"""

import functools
from typing import Any, Callable

import hookpatch.envs as envs
from hookpatch.logger import init_logger
from hookpatch.patch.hook_patch import Hook, HookPhase, Patch

logger = init_logger(__name__)


def _fire(patch: Patch, hook: Hook, *args: Any) -> Any:
    if not hook.active:
        # removed by an earlier hook during this call
        return None
    try:
        return hook.callback(*args)
    except Exception:
        logger.exception(
            "Could not fire %s callback of %s for %r",
            hook.phase.value,
            patch.name,
            hook.caller,
        )
        return None


def make_override(patch: Patch) -> Callable[..., Any]:

    def override(*args, **kwargs):
        receiver, call_args = patch.split_receiver(args)
        if not patch.hooks:
            return patch.call_original(receiver, call_args, kwargs)
        if envs.HOOKPATCH_TRACE_DISPATCH:
            logger.debug(
                "Dispatching %s through %d hooks", patch.name, len(patch.hooks)
            )

        call_args = list(call_args)
        for hook in patch.hooks_for(HookPhase.BEFORE):
            _fire(patch, hook, receiver, call_args, kwargs)

        insteads = patch.hooks_for(HookPhase.INSTEAD)
        if not insteads:
            return_value = patch.call_original(receiver, call_args, kwargs)
        else:
            return_value = None
            original = patch.bind_original(receiver)
            for hook in insteads:
                temp_return = _fire(patch, hook, receiver, call_args, kwargs, original)
                if temp_return is not None:
                    return_value = temp_return

        for hook in patch.hooks_for(HookPhase.AFTER):
            temp_return = _fire(patch, hook, receiver, call_args, kwargs, return_value)
            if temp_return is not None:
                return_value = temp_return
        return return_value

    # name, docstring and __dict__ of the original, and __wrapped__ so that
    # inspect.signature / inspect.getsource still describe the original
    original = patch.original_function
    updated = () if isinstance(original, type) else functools.WRAPPER_UPDATES
    functools.update_wrapper(override, original, updated=updated)
    override.__original_function__ = original
    return override
