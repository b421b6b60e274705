"""Controller lifecycle hook system.

Provides extension points around every stage of the request pipeline:
- before_create / after_create
- before_index (fetch config) / after_index (model list)
- before_show / after_show
- before_update / after_update
- before_delete / after_delete (no model)

A hook returns None to continue, or HALT after writing its own response.

Usage:
    from crudforge.hooks import HALT, LifecycleHooks, hook

    @hook("rejectArchived")
    async def reject_archived(response, request, model):
        if model["archived"]:
            response.set_error_details("Archived records are read-only")
            response.set_result(403, None)
            return HALT
"""

from crudforge.hooks.registry import HookRegistry, hook
from crudforge.hooks.service import HookService
from crudforge.hooks.types import (
    HALT,
    HOOK_POINTS,
    HookFn,
    HookResult,
    LifecycleHooks,
)

__all__ = [
    "HALT",
    "HOOK_POINTS",
    "HookFn",
    "HookRegistry",
    "HookResult",
    "HookService",
    "LifecycleHooks",
    "hook",
]
