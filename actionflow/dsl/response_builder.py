"""
Fluent builder for one outcome's HandlerSet.
Generic per-format callbacks plus convenience directives that fill the html slot
(redirect_to / render_page / render_component / render_partial); the last one written wins.
"""
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional

from actionflow.actions.protocol import (
    HandlerSet,
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    frozen_mapping,
)
from actionflow.dsl.frame_builder import TurboFrameBuilder
from actionflow.dsl.stream_builder import (
    DEFAULT_FLASH_PARTIAL,
    DEFAULT_FLASH_TARGET,
    DEFAULT_FORM_ERRORS_PARTIAL,
    DEFAULT_FORM_ERRORS_TARGET,
    StreamBuilder,
)


class ResponseBuilder:
    def __init__(
        self,
        flash_partial: str = DEFAULT_FLASH_PARTIAL,
        form_errors_partial: str = DEFAULT_FORM_ERRORS_PARTIAL,
        flash_target: str = DEFAULT_FLASH_TARGET,
        form_errors_target: str = DEFAULT_FORM_ERRORS_TARGET,
    ):
        self._handlers = HandlerSet()
        self._flash_partial = flash_partial
        self._form_errors_partial = form_errors_partial
        self._flash_target = flash_target
        self._form_errors_target = form_errors_target

    def _set(self, **slots: Any) -> None:
        self._handlers = replace(self._handlers, **slots)

    # Each generic setter returns the callback so it also works as a decorator.
    def html(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._set(html=fn)
        return fn

    def json(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._set(json=fn)
        return fn

    def csv(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._set(csv=fn)
        return fn

    def xml(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._set(xml=fn)
        return fn

    def turbo_stream(self, configure: Callable[[StreamBuilder], Any]) -> Callable[[StreamBuilder], Any]:
        stream = StreamBuilder(
            self._flash_partial,
            self._form_errors_partial,
            self._flash_target,
            self._form_errors_target,
        )
        configure(stream)
        self._set(turbo_stream=stream.build())
        return configure

    def turbo_frame(self, configure: Callable[[TurboFrameBuilder], Any]) -> Callable[[TurboFrameBuilder], Any]:
        frame = TurboFrameBuilder()
        configure(frame)
        self._set(turbo_frame=frame.build())
        return configure

    def redirect_to(self, path: Any, **options: Any) -> "ResponseBuilder":
        self._set(html=Redirect(path=path, options=frozen_mapping(options)))
        return self

    def render_page(self, status: Optional[int] = None) -> "ResponseBuilder":
        self._set(html=RenderPage(status=status))
        return self

    def render_component(
        self,
        component: Any,
        locals: Optional[Mapping[str, Any]] = None,
        status: Optional[int] = None,
    ) -> "ResponseBuilder":
        self._set(html=RenderComponent(component=component, locals=frozen_mapping(locals), status=status))
        return self

    def render_partial(
        self,
        path: str,
        locals: Optional[Mapping[str, Any]] = None,
        status: Optional[int] = None,
    ) -> "ResponseBuilder":
        self._set(html=RenderPartial(path=path, locals=frozen_mapping(locals), status=status))
        return self

    def build(self) -> HandlerSet:
        return self._handlers
