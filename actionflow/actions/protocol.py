"""
Action declaration protocol: immutable records produced by the builders and read by the engine.
ActionConfig (one per declared action) -> HandlerSet (one per outcome) -> StreamOp / directives.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple, Union


class Format(str, Enum):
    HTML = "html"
    TURBO_STREAM = "turbo_stream"
    JSON = "json"
    CSV = "csv"
    XML = "xml"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHORIZATION = "authorization"
    ANY = "any"


class StreamAction(str, Enum):
    APPEND = "append"
    PREPEND = "prepend"
    REPLACE = "replace"
    UPDATE = "update"
    REMOVE = "remove"
    BEFORE = "before"
    AFTER = "after"
    REFRESH = "refresh"


def frozen_mapping(value: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class StreamOp:
    """One Turbo Stream operation; content comes from component, partial or raw html."""

    action: StreamAction
    target: Any = None
    component: Any = None
    partial: Optional[str] = None
    html: Optional[str] = None
    locals: Mapping[str, Any] = field(default_factory=frozen_mapping)


@dataclass(frozen=True)
class Redirect:
    path: Any
    options: Mapping[str, Any] = field(default_factory=frozen_mapping)


@dataclass(frozen=True)
class RenderPage:
    status: Optional[int] = None


@dataclass(frozen=True)
class RenderComponent:
    component: Any
    locals: Mapping[str, Any] = field(default_factory=frozen_mapping)
    status: Optional[int] = None


@dataclass(frozen=True)
class RenderPartial:
    path: str
    locals: Mapping[str, Any] = field(default_factory=frozen_mapping)
    status: Optional[int] = None


HtmlHandler = Union[Callable[..., Any], Redirect, RenderPage, RenderComponent, RenderPartial]


@dataclass(frozen=True)
class TurboFrameConfig:
    """Frame response; kind is None (plain render), "component", "partial" or "page"."""

    kind: Optional[str] = None
    target: Any = None
    locals: Mapping[str, Any] = field(default_factory=frozen_mapping)
    status: Optional[int] = None
    layout: bool = False


@dataclass(frozen=True)
class HandlerSet:
    """Per-format handlers for one outcome (success, or one error category)."""

    html: Optional[HtmlHandler] = None
    turbo_stream: Optional[Tuple[StreamOp, ...]] = None
    json: Optional[Callable[..., Any]] = None
    csv: Optional[Callable[..., Any]] = None
    xml: Optional[Callable[..., Any]] = None
    turbo_frame: Optional[TurboFrameConfig] = None


EMPTY_HANDLERS = HandlerSet()


@dataclass(frozen=True)
class ActionConfig:
    """Everything declared for one action. Never mutated after build()."""

    name: str
    options: Mapping[str, Any] = field(default_factory=frozen_mapping)
    service: Any = None
    service_method: str = "call"
    page: Any = None
    page_config_modifier: Optional[Callable[..., Any]] = None
    component: Any = None
    component_locals: Mapping[str, Any] = field(default_factory=frozen_mapping)
    turbo_frame: Optional[str] = None
    params_key: Optional[str] = None
    permitted_params: Optional[Tuple[Any, ...]] = None
    before_callbacks: Tuple[Callable[..., Any], ...] = ()
    after_callbacks: Tuple[Callable[..., Any], ...] = ()
    on_success: Optional[HandlerSet] = None
    error_handlers: Mapping[ErrorCategory, HandlerSet] = field(default_factory=frozen_mapping)
    skip_authentication: bool = False
    skip_authorization: bool = False

    def handlers_for(self, category: Any) -> HandlerSet:
        """Handlers for an error category, falling back to `any`, then to an empty set."""
        category = ErrorCategory(category)
        handlers = self.error_handlers.get(category)
        if handlers is None:
            handlers = self.error_handlers.get(ErrorCategory.ANY)
        return handlers if handlers is not None else EMPTY_HANDLERS
