"""
ActionBuilder: fluent assembler for one action declaration.
Used once per declaration at class-definition time; build() returns a frozen ActionConfig.
"""
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from actionflow.actions.params import validate_param_schema, validate_required_params
from actionflow.actions.protocol import ActionConfig, ErrorCategory, HandlerSet, frozen_mapping
from actionflow.dsl.response_builder import ResponseBuilder
from actionflow.dsl.stream_builder import (
    DEFAULT_FLASH_PARTIAL,
    DEFAULT_FLASH_TARGET,
    DEFAULT_FORM_ERRORS_PARTIAL,
    DEFAULT_FORM_ERRORS_TARGET,
)


class ActionBuilder:
    """
    Setters record declarative pieces; nothing is validated until the action runs
    (an action with no service simply skips service invocation).
    """

    def __init__(
        self,
        name: str,
        flash_partial: str = DEFAULT_FLASH_PARTIAL,
        form_errors_partial: str = DEFAULT_FORM_ERRORS_PARTIAL,
        flash_target: str = DEFAULT_FLASH_TARGET,
        form_errors_target: str = DEFAULT_FORM_ERRORS_TARGET,
        **options: Any,
    ):
        self._config = ActionConfig(name=name, options=frozen_mapping(options))
        self._before: List[Callable[..., Any]] = []
        self._after: List[Callable[..., Any]] = []
        self._error_handlers: Dict[ErrorCategory, HandlerSet] = {}
        self._stream_defaults = (flash_partial, form_errors_partial, flash_target, form_errors_target)

    def _set(self, **fields: Any) -> "ActionBuilder":
        self._config = replace(self._config, **fields)
        return self

    def _response(self, configure: Callable[[ResponseBuilder], Any]) -> HandlerSet:
        builder = ResponseBuilder(*self._stream_defaults)
        configure(builder)
        return builder.build()

    def service(self, service: Any, method: str = "call") -> "ActionBuilder":
        return self._set(service=service, service_method=method)

    def page(self, page_class: Any) -> "ActionBuilder":
        return self._set(page=page_class)

    def page_config(self, modifier: Callable[..., Any]) -> Callable[..., Any]:
        self._set(page_config_modifier=modifier)
        return modifier

    def component(self, component: Any, locals: Optional[Mapping[str, Any]] = None) -> "ActionBuilder":
        return self._set(component=component, component_locals=frozen_mapping(locals))

    def turbo_frame(self, frame_id: str) -> "ActionBuilder":
        return self._set(turbo_frame=frame_id)

    def params_key(self, key: str) -> "ActionBuilder":
        return self._set(params_key=key)

    def permit(self, *attrs: Any) -> "ActionBuilder":
        return self._set(permitted_params=tuple(attrs))

    def on_success(self, configure: Callable[[ResponseBuilder], Any]) -> Callable[[ResponseBuilder], Any]:
        self._set(on_success=self._response(configure))
        return configure

    def on_error(self, category: Any = ErrorCategory.ANY, configure: Optional[Callable[[ResponseBuilder], Any]] = None):
        """
        Register the handlers for one error category; a second call for the same
        category replaces the first. Usable directly or as @on_error("validation").
        """
        if callable(category) and configure is None:
            category, configure = ErrorCategory.ANY, category
        category = ErrorCategory(category)

        def register(fn: Callable[[ResponseBuilder], Any]) -> Callable[[ResponseBuilder], Any]:
            self._error_handlers[category] = self._response(fn)
            return fn

        if configure is None:
            return register
        return register(configure)

    def before(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._before.append(fn)
        return fn

    def after(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._after.append(fn)
        return fn

    def requires_params(self, *keys: str) -> "ActionBuilder":
        self.before(lambda ctx: validate_required_params(ctx.params, *keys))
        return self

    def param_schema(self, schema: Mapping[str, Mapping[str, Any]]) -> "ActionBuilder":
        schema = {k: dict(v) for k, v in schema.items()}
        self.before(lambda ctx: validate_param_schema(ctx.params, schema))
        return self

    def skip_authentication(self, value: bool = True) -> "ActionBuilder":
        return self._set(skip_authentication=bool(value))

    def skip_authorization(self, value: bool = True) -> "ActionBuilder":
        return self._set(skip_authorization=bool(value))

    def build(self) -> ActionConfig:
        return replace(
            self._config,
            before_callbacks=tuple(self._before),
            after_callbacks=tuple(self._after),
            error_handlers=frozen_mapping(self._error_handlers),
        )
