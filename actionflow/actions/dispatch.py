"""
Response dispatch: turn a finished ExecutionContext into a response for the negotiated format.
Success and error each walk a per-format chain: explicit handler first, then the default.
"""
from html import escape
from typing import Any, Optional, Tuple

from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from actionflow.actions.classify import error_status
from actionflow.actions.context import ExecutionContext
from actionflow.actions.protocol import (
    EMPTY_HANDLERS,
    ErrorCategory,
    Format,
    HandlerSet,
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    StreamAction,
    StreamOp,
    TurboFrameConfig,
    frozen_mapping,
)
from actionflow.inflection import is_present
from actionflow.rendering.components import build_component_locals, find_page_component, render_component
from actionflow.rendering.csv_support import CSV_MEDIA_TYPE, send_csv
from actionflow.rendering.turbo_streams import TURBO_STREAM_MEDIA_TYPE, render_streams
from actionflow.rendering.xml_support import XML_MEDIA_TYPE, xml_response
from actionflow.serializers import to_serializable

INTERNAL_RESULT_KEYS = ("page_config", "exception")
DEFAULT_ERROR_MESSAGE = "An error occurred"

_TEXT_MEDIA_TYPES = {
    Format.HTML: "text/html",
    Format.TURBO_STREAM: TURBO_STREAM_MEDIA_TYPE,
    Format.CSV: CSV_MEDIA_TYPE,
    Format.XML: XML_MEDIA_TYPE,
    Format.JSON: "application/json",
}


def public_result(result: Optional[dict]) -> dict:
    return {k: v for k, v in (result or {}).items() if k not in INTERNAL_RESULT_KEYS}


def error_message(ctx: ExecutionContext) -> str:
    if ctx.error is not None and str(ctx.error):
        return str(ctx.error)
    return (ctx.result or {}).get("error") or DEFAULT_ERROR_MESSAGE


def error_details(ctx: ExecutionContext) -> Any:
    """Field-level errors from the result, else from the captured exception."""
    errors = (ctx.result or {}).get("errors")
    if is_present(errors):
        return errors
    exc_errors = getattr(ctx.error, "errors", None)
    if is_present(exc_errors) and not callable(exc_errors):
        return exc_errors
    return None


def coerce_response(value: Any, fmt: str, status: int) -> Response:
    """Handler return values: Response as is, None -> 204, str by format, dict/list as data."""
    if isinstance(value, Response):
        return value
    if value is None:
        return Response(status_code=204)
    if isinstance(value, str):
        media_type = _TEXT_MEDIA_TYPES.get(fmt, "text/plain")
        if fmt == Format.HTML:
            return HTMLResponse(value, status_code=status)
        return Response(value, status_code=status, media_type=media_type)
    if isinstance(value, (dict, list, tuple)):
        if fmt == Format.XML:
            return xml_response(value, status_code=status)
        if fmt == Format.CSV and isinstance(value, (list, tuple)):
            return send_csv(value, status_code=status)
        return JSONResponse(to_serializable(value), status_code=status)
    raise TypeError(f"cannot build a {fmt} response from {type(value).__name__}")


class Dispatcher:
    """Renders through the hooks of its controller (partials, page components, views, paths)."""

    def __init__(self, controller: Any):
        self.controller = controller
        self.settings = controller.settings

    def dispatch_success(self, ctx: ExecutionContext, fmt: str) -> Response:
        self.set_success_flash(ctx)
        handlers = ctx.config.on_success or EMPTY_HANDLERS
        if fmt == Format.HTML:
            if ctx.request.turbo_frame_request and handlers.turbo_frame is not None:
                return self.render_frame(ctx, handlers.turbo_frame, 200)
            return self.render_html_slot(ctx, handlers.html, 200)
        if fmt == Format.TURBO_STREAM:
            ops = handlers.turbo_stream if handlers.turbo_stream is not None else self.default_success_streams()
            return self.stream_response(ctx, ops, 200)
        if fmt == Format.JSON:
            if handlers.json is not None:
                return coerce_response(handlers.json(ctx), fmt, 200)
            return JSONResponse(to_serializable(public_result(ctx.result)))
        if fmt == Format.CSV:
            if handlers.csv is not None:
                return coerce_response(handlers.csv(ctx), fmt, 200)
            return self.default_csv(ctx)
        if fmt == Format.XML:
            if handlers.xml is not None:
                return coerce_response(handlers.xml(ctx), fmt, 200)
            data = ctx.collection if is_present(ctx.collection) else ctx.resource
            if data is None:
                data = public_result(ctx.result)
            return xml_response(data)
        return Response(status_code=406)

    def dispatch_error(self, ctx: ExecutionContext, fmt: str) -> Response:
        category = ctx.error_category or ErrorCategory.ANY
        status = error_status(category)
        self.set_error_flash(ctx, category)
        handlers: HandlerSet = ctx.config.handlers_for(category)
        if fmt == Format.HTML:
            if ctx.request.turbo_frame_request and handlers.turbo_frame is not None:
                return self.render_frame(ctx, handlers.turbo_frame, status)
            return self.render_html_slot(ctx, handlers.html, status)
        if fmt == Format.TURBO_STREAM:
            ops = handlers.turbo_stream if handlers.turbo_stream is not None else self.default_error_streams(ctx)
            return self.stream_response(ctx, ops, status)
        if fmt == Format.JSON:
            if handlers.json is not None:
                return coerce_response(handlers.json(ctx), fmt, status)
            payload = {"success": False, "error": error_message(ctx), "type": category.value}
            errors = error_details(ctx)
            if errors is not None:
                payload["errors"] = errors
            return JSONResponse(to_serializable(payload), status_code=status)
        if fmt == Format.CSV:
            if handlers.csv is not None:
                return coerce_response(handlers.csv(ctx), fmt, status)
            return Response(status_code=status)
        if fmt == Format.XML:
            if handlers.xml is not None:
                return coerce_response(handlers.xml(ctx), fmt, status)
            body = {"message": error_message(ctx)}
            errors = error_details(ctx)
            if errors is not None:
                body["errors"] = errors
            return xml_response({"error": body}, status_code=status)
        return Response(status_code=406)

    def set_success_flash(self, ctx: ExecutionContext) -> None:
        message = self.controller.flash_message(
            f"flash.{self.controller.controller_name()}.{ctx.action}.success",
            "flash.actions.success",
        )
        if message:
            ctx.flash.setdefault("notice", message)

    def set_error_flash(self, ctx: ExecutionContext, category: ErrorCategory) -> None:
        message = self.controller.flash_message(
            f"flash.{self.controller.controller_name()}.{ctx.action}.{category.value}",
            f"flash.errors.{category.value}",
        )
        if message:
            ctx.flash.setdefault("alert", message)

    def render_html_slot(self, ctx: ExecutionContext, slot: Any, status: int) -> Response:
        if slot is None:
            return self.render_page_or_component(ctx, status)
        if isinstance(slot, Redirect):
            return self.redirect(ctx, slot)
        if isinstance(slot, RenderPage):
            return self.render_page_or_component(ctx, slot.status or status)
        if isinstance(slot, RenderComponent):
            html = render_component(slot.component, build_component_locals(slot.locals, ctx.result))
            return HTMLResponse(html, status_code=slot.status or status)
        if isinstance(slot, RenderPartial):
            html = self.render_partial(ctx, slot.path, build_component_locals(slot.locals, ctx.result))
            return HTMLResponse(html, status_code=slot.status or status)
        return coerce_response(slot(ctx), Format.HTML, status)

    def redirect(self, ctx: ExecutionContext, directive: Redirect) -> Response:
        options = dict(directive.options)
        for kind in ("notice", "alert"):
            if options.get(kind):
                ctx.flash[kind] = options[kind]
        url = self.controller.resolve_path(directive.path, ctx)
        return RedirectResponse(url, status_code=int(options.get("status") or 302))

    def render_page_or_component(self, ctx: ExecutionContext, status: int, layout: bool = True) -> Response:
        """Page component from the page config, else the action's component, else the view hook."""
        page_component = find_page_component(ctx.page_config, self.controller.page_components)
        if page_component is not None:
            locals = build_component_locals({"page_config": ctx.page_config}, ctx.result)
            return HTMLResponse(render_component(page_component, locals), status_code=status)
        if ctx.config.component is not None:
            locals = build_component_locals(ctx.config.component_locals, ctx.result)
            return HTMLResponse(render_component(ctx.config.component, locals), status_code=status)
        return self.controller.render_view(ctx, status=status, layout=layout)

    def render_frame(self, ctx: ExecutionContext, frame: TurboFrameConfig, status: int) -> Response:
        if frame.kind == "page":
            return self.render_page_or_component(ctx, frame.status or status, layout=frame.layout)
        if frame.kind == "component":
            html = render_component(frame.target, build_component_locals(frame.locals, ctx.result))
        elif frame.kind == "partial":
            html = self.render_partial(ctx, frame.target, frame.locals)
        else:
            return self.controller.render_view(ctx, status=status, layout=frame.layout)
        return HTMLResponse(self.wrap_frame(ctx, html), status_code=status)

    def wrap_frame(self, ctx: ExecutionContext, html: str) -> str:
        frame_id = ctx.config.turbo_frame
        if not frame_id:
            return html
        return f'<turbo-frame id="{escape(frame_id, quote=True)}">{html}</turbo-frame>'

    def render_partial(self, ctx: ExecutionContext, path: str, locals: Any = None) -> str:
        values = dict(locals or {})
        if path == self.settings.flash_partial:
            values.setdefault("flash", ctx.flash_messages())
        return self.controller.partials.render(path, values)

    def default_success_streams(self) -> Tuple[StreamOp, ...]:
        return (
            StreamOp(action=StreamAction.UPDATE, target=self.settings.flash_target,
                     partial=self.settings.flash_partial),
        )

    def default_error_streams(self, ctx: ExecutionContext) -> Tuple[StreamOp, ...]:
        ops = list(self.default_success_streams())
        errors = error_details(ctx)
        if errors is not None:
            ops.append(
                StreamOp(
                    action=StreamAction.UPDATE,
                    target=self.settings.form_errors_target,
                    partial=self.settings.form_errors_partial,
                    locals=frozen_mapping({"errors": errors}),
                )
            )
        return tuple(ops)

    def stream_content(self, ctx: ExecutionContext, op: StreamOp) -> str:
        if op.component is not None:
            return render_component(op.component, build_component_locals(op.locals, ctx.result))
        if op.partial is not None:
            return self.render_partial(ctx, op.partial, op.locals)
        return op.html or ""

    def stream_response(self, ctx: ExecutionContext, ops: Tuple[StreamOp, ...], status: int) -> Response:
        body = render_streams(ops, lambda op: self.stream_content(ctx, op))
        return Response(body, status_code=status, media_type=TURBO_STREAM_MEDIA_TYPE)

    def default_csv(self, ctx: ExecutionContext) -> Response:
        if is_present(ctx.collection):
            records = list(ctx.collection)
        elif ctx.resource is not None:
            records = [ctx.resource]
        else:
            return Response(status_code=204)
        return send_csv(records, filename=self.settings.csv_filename)
