"""Hook execution service.

Runs a single lifecycle hook and tells the pipeline whether to go on.
"""

import inspect
import logging
from typing import Any

from crudforge.hooks.types import HookResult, LifecycleHooks

logger = logging.getLogger(__name__)


class HookService:
    """Invokes lifecycle hooks on behalf of the request pipeline."""

    async def run(
        self,
        hook_point: str,
        hooks: LifecycleHooks,
        response: Any,
        request: Any,
        *subject: Any,
    ) -> bool:
        """Run the hook configured for ``hook_point``.

        Args:
            hook_point: Name of the LifecycleHooks slot
            hooks: The controller's hooks
            response: The request's RestResponse
            request: The incoming request
            subject: Model, fetch config or model list (nothing for after_delete)

        Returns:
            True if the pipeline should continue. False if the hook halted
            (the hook owns the response) or raised (the response is set to
            a generic 500).
        """
        hook_fn = getattr(hooks, hook_point)
        if hook_fn is None:
            return True

        try:
            result = hook_fn(response, request, *subject)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            logger.exception("Lifecycle hook '%s' failed", hook_point)
            response.set_error_details(None)
            response.set_result(500, None)
            return False

        if isinstance(result, HookResult) and result.halt:
            logger.debug("Lifecycle hook '%s' halted the request", hook_point)
            return False
        return True
