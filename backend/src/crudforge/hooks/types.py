"""Lifecycle hook types.

Defines the data structures for controller lifecycle hooks:
- HookResult: return value telling the pipeline whether to continue
- LifecycleHooks: the ten optional hook slots of a controller
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.requests import Request

    from crudforge.rest.response import RestResponse


@dataclass(frozen=True)
class HookResult:
    """Return value from a lifecycle hook.

    Attributes:
        halt: Stop the pipeline. The hook is responsible for having
            written the response (status, details, result).
    """

    halt: bool = False


HALT = HookResult(halt=True)

# Hook signature: async (response, request, subject) -> HookResult | None.
# after_delete hooks take only (response, request).
HookFn = Callable[..., Awaitable["HookResult | None"]]

HOOK_POINTS = (
    "before_create",
    "after_create",
    "before_index",
    "after_index",
    "before_show",
    "after_show",
    "before_update",
    "after_update",
    "before_delete",
    "after_delete",
)


@dataclass
class LifecycleHooks:
    """Optional callbacks run at fixed points of the request pipeline.

    Attributes:
        before_create: After validation and model prep, before insertion
        after_create: After insertion, before the response
        before_index: After the BulkFetchConfig is built, before the fetch
        after_index: After the fetch (receives the list of models)
        before_show: After the identifier is set, before the load
        after_show: After the load, before the response
        before_update: After load and validation, before the update
        after_update: After the update, before the response
        before_delete: After the target is resolved, before deletion
        after_delete: After deletion (receives no model)
    """

    before_create: HookFn | None = None
    after_create: HookFn | None = None
    before_index: HookFn | None = None
    after_index: HookFn | None = None
    before_show: HookFn | None = None
    after_show: HookFn | None = None
    before_update: HookFn | None = None
    after_update: HookFn | None = None
    before_delete: HookFn | None = None
    after_delete: HookFn | None = None

    @classmethod
    def from_names(cls, names: dict[str, str]) -> LifecycleHooks:
        """Build hooks from a mapping of hook point to registered hook name.

        Raises:
            ValueError: If a hook point is unknown or a name is not registered
        """
        from crudforge.hooks.registry import HookRegistry

        resolved: dict[str, Any] = {}
        for point, name in names.items():
            if point not in HOOK_POINTS:
                raise ValueError(
                    f"Unknown hook point '{point}'. Expected one of: {', '.join(HOOK_POINTS)}"
                )
            resolved[point] = HookRegistry.get(name)
        return cls(**resolved)

    def configured(self) -> list[str]:
        """Names of the hook points that have a callback."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]
