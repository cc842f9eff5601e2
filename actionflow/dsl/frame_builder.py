"""
Fluent builder for Turbo Frame responses: component, partial or page, layout off by default.
"""
from typing import Any, Mapping, Optional

from actionflow.actions.protocol import TurboFrameConfig, frozen_mapping


class TurboFrameBuilder:
    def __init__(self) -> None:
        self._kind: Optional[str] = None
        self._target: Any = None
        self._locals: Mapping[str, Any] = frozen_mapping()
        self._status: Optional[int] = None
        self._layout = False

    def component(self, component: Any, locals: Optional[Mapping[str, Any]] = None) -> "TurboFrameBuilder":
        self._kind, self._target, self._locals = "component", component, frozen_mapping(locals)
        return self

    def partial(self, path: str, locals: Optional[Mapping[str, Any]] = None) -> "TurboFrameBuilder":
        self._kind, self._target, self._locals = "partial", path, frozen_mapping(locals)
        return self

    def render_page(self, status: Optional[int] = None) -> "TurboFrameBuilder":
        self._kind, self._target, self._status = "page", None, status
        return self

    def layout(self, value: bool) -> "TurboFrameBuilder":
        self._layout = bool(value)
        return self

    def build(self) -> TurboFrameConfig:
        return TurboFrameConfig(
            kind=self._kind,
            target=self._target,
            locals=self._locals,
            status=self._status,
            layout=self._layout,
        )
