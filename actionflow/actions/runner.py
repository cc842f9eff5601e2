"""
ActionRunner: context → pipeline (reset / policies / before / service / page config / after)
→ success or error dispatch → flash persistence.
Emits events at key points (ACTION_START, ACTION_OK / ACTION_FAIL, UNKNOWN_FORMAT) to the log
and to an optional event hook.
"""
from typing import Any, Callable, Dict, Optional

from loguru import logger
from starlette.responses import Response

from actionflow.actions.classify import determine_error_category
from actionflow.actions.context import ExecutionContext
from actionflow.actions.dispatch import Dispatcher
from actionflow.actions.pipeline import run_action_with_pipeline
from actionflow.actions.protocol import ActionConfig, Format
from actionflow.actions.result import is_successful
from actionflow.actions.steps import default_pipeline_steps
from actionflow.api.request import ActionRequest
from actionflow.logging_utils import log_event

_KNOWN_FORMATS = {f.value for f in Format}


def _result_summary(result: Any, max_keys: int = 5) -> Dict[str, Any]:
    """Small summary for event payloads."""
    if not isinstance(result, dict):
        return {}
    keys = [k for k in ("success", "message", "error", "error_code", "error_type") if k in result]
    return {k: result[k] for k in keys[:max_keys]}


class ActionRunner:
    """
    Runs one declared action for one request against a controller.
    The controller supplies hooks (current_user, policies, partials, render_view, resolve_path...);
    event_hook(event_type, payload) is called for audit and test instrumentation.
    Exceptions from callbacks, policies and rendering propagate; service exceptions do not.
    """

    def __init__(self, controller: Any, event_hook: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        self._controller = controller
        self._event_hook = event_hook
        self._dispatcher = Dispatcher(controller)

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        logger.debug(log_event(event_type, **payload))
        if self._event_hook:
            try:
                self._event_hook(event_type, payload)
            except Exception as e:
                logger.warning(log_event("EVENT_HOOK_FAILED", hook_event=event_type, error=str(e)))

    def build_context(self, config: ActionConfig, request: ActionRequest) -> ExecutionContext:
        controller = self._controller
        ctx = ExecutionContext(request=request, config=config, controller=controller)
        ctx.current_user = controller.current_user(request)
        ctx.flash_now = controller.load_flash(request)
        return ctx

    def run(self, config: ActionConfig, request: ActionRequest) -> Response:
        settings = self._controller.settings
        ctx = self.build_context(config, request)
        fmt = request.negotiated_format(settings.turbo_enabled)
        self._emit("ACTION_START", {"action": config.name, "format": str(getattr(fmt, "value", fmt))})

        if str(getattr(fmt, "value", fmt)) not in _KNOWN_FORMATS:
            self._emit("UNKNOWN_FORMAT", {"action": config.name, "format": fmt})
            return Response(status_code=406)

        run_action_with_pipeline(ctx, default_pipeline_steps)

        if is_successful(ctx.result, ctx.error):
            response = self._dispatcher.dispatch_success(ctx, fmt)
            self._emit("ACTION_OK", {"action": config.name, "status": response.status_code,
                                     **_result_summary(ctx.result)})
        else:
            if ctx.error_category is None:
                ctx.error_category = determine_error_category(ctx.result)
            response = self._dispatcher.dispatch_error(ctx, fmt)
            self._emit("ACTION_FAIL", {"action": config.name, "status": response.status_code,
                                       "category": ctx.error_category.value, **_result_summary(ctx.result)})

        self._controller.persist_flash(ctx, response)
        return response
