"""
Responding directly with a service result (outside declared actions).
html redirects or renders, turbo_stream renders the result's streams or resource defaults,
json renders the sanitized result.
"""
from typing import Any, List, Mapping, Optional

from starlette.responses import JSONResponse, Response

from actionflow.actions.classify import determine_error_category, error_status
from actionflow.actions.context import ExecutionContext
from actionflow.actions.dispatch import Dispatcher
from actionflow.actions.protocol import ActionConfig, Format, Redirect, StreamAction, StreamOp, frozen_mapping
from actionflow.actions.result import is_successful, normalize_result
from actionflow.api.request import ActionRequest
from actionflow.inflection import is_present, singularize
from actionflow.rendering.page_config import normalize_page_config
from actionflow.rendering.turbo_streams import dom_id
from actionflow.serializers import to_serializable

SANITIZED_KEYS = ("page_config", "turbo_streams", "redirect_to", "exception")


def sanitize_json_result(result: Mapping[str, Any]) -> dict:
    return {k: v for k, v in result.items() if k not in SANITIZED_KEYS}


class ServiceResponderMixin:
    """Mixed into ActionController; relies on its settings, flash and rendering hooks."""

    def _service_context(self, request: ActionRequest, result: dict, action: str) -> ExecutionContext:
        ctx = ExecutionContext(
            request=request,
            config=ActionConfig(name=action),
            controller=self,
            current_user=self.current_user(request),
        )
        ctx.flash_now = self.load_flash(request)
        ctx.result = result
        ctx.page_config = normalize_page_config(result.get("page_config"))
        return ctx

    def resource_list_id(self) -> str:
        return f"{self.controller_name()}_list"

    def resource_partial_path(self) -> str:
        name = self.controller_name()
        return f"{name}/{singularize(name)}"

    def form_partial_path(self) -> str:
        return f"{self.controller_name()}/form"

    def resource_streams(self, result: Mapping[str, Any]) -> List[StreamOp]:
        """create -> prepend to the list, update -> replace the record, destroy -> remove it."""
        resource = result.get("resource")
        locals = frozen_mapping({"resource": resource})
        kind = str(result.get("action") or "")
        if kind == "create":
            return [StreamOp(StreamAction.PREPEND, self.resource_list_id(), partial=self.resource_partial_path(), locals=locals)]
        if kind == "update":
            return [StreamOp(StreamAction.REPLACE, dom_id(resource), partial=self.resource_partial_path(), locals=locals)]
        if kind == "destroy":
            return [StreamOp(StreamAction.REMOVE, dom_id(resource))]
        return []

    def respond_with_service(
        self,
        request: ActionRequest,
        result: Any,
        success_path: Any = None,
        failure_path: Any = None,
        action: str = "service",
    ) -> Response:
        result = normalize_result(result) or {}
        ctx = self._service_context(request, result, action)
        dispatcher = Dispatcher(self)
        fmt = request.negotiated_format(self.settings.turbo_enabled)
        success = is_successful(result)

        if success and result.get("message"):
            ctx.flash["notice"] = result["message"]
        elif not success and result.get("error"):
            ctx.flash["alert"] = result["error"]

        if fmt == Format.HTML:
            target = result.get("redirect_to") or (success_path if success else failure_path)
            if target:
                response = dispatcher.redirect(ctx, Redirect(target))
            else:
                response = dispatcher.render_page_or_component(ctx, 200 if success else 422)
        elif fmt == Format.TURBO_STREAM:
            ops = result.get("turbo_streams")
            if ops is None:
                ops = dispatcher.default_success_streams() if success else dispatcher.default_error_streams(ctx)
                ops = list(ops)
                if success and result.get("resource") is not None:
                    ops.extend(self.resource_streams(result))
                resource = result.get("resource")
                if not success and resource is not None and is_present(getattr(resource, "errors", None)):
                    ops.append(StreamOp(StreamAction.REPLACE, dom_id(resource, "form"),
                                        partial=self.form_partial_path(), locals=frozen_mapping({"resource": resource})))
            response = dispatcher.stream_response(ctx, tuple(ops), 200 if success else 422)
        elif fmt == Format.JSON:
            status = 200 if success else error_status(determine_error_category(result))
            response = JSONResponse(to_serializable(sanitize_json_result(result)), status_code=status)
        else:
            response = Response(status_code=406)

        self.persist_flash(ctx, response)
        return response

    def respond_with_page_config(self, request: ActionRequest, result: Any, status: Optional[int] = None,
                                 action: str = "service") -> Response:
        result = normalize_result(result) or {}
        ctx = self._service_context(request, result, action)
        if status is None:
            status = 200 if is_successful(result) else 422
        return Dispatcher(self).render_page_or_component(ctx, status)
