"""
Fluent builder for Turbo Stream operations. Each call appends one StreamOp; order is preserved.
"""
from typing import Any, List, Mapping, Optional, Tuple

from actionflow.actions.protocol import StreamAction, StreamOp, frozen_mapping

DEFAULT_FLASH_PARTIAL = "shared/flash"
DEFAULT_FORM_ERRORS_PARTIAL = "shared/form_errors"
DEFAULT_FLASH_TARGET = "flash"
DEFAULT_FORM_ERRORS_TARGET = "form_errors"


class StreamBuilder:
    def __init__(
        self,
        flash_partial: str = DEFAULT_FLASH_PARTIAL,
        form_errors_partial: str = DEFAULT_FORM_ERRORS_PARTIAL,
        flash_target: str = DEFAULT_FLASH_TARGET,
        form_errors_target: str = DEFAULT_FORM_ERRORS_TARGET,
    ):
        self._ops: List[StreamOp] = []
        self._flash_partial = flash_partial
        self._form_errors_partial = form_errors_partial
        self._flash_target = flash_target
        self._form_errors_target = form_errors_target

    def _add(
        self,
        action: StreamAction,
        target: Any,
        component: Any = None,
        partial: Optional[str] = None,
        html: Optional[str] = None,
        locals: Optional[Mapping[str, Any]] = None,
    ) -> "StreamBuilder":
        self._ops.append(
            StreamOp(
                action=action,
                target=target,
                component=component,
                partial=partial,
                html=html,
                locals=frozen_mapping(locals),
            )
        )
        return self

    def append(self, target: Any, component: Any = None, partial: Optional[str] = None,
               html: Optional[str] = None, locals: Optional[Mapping[str, Any]] = None) -> "StreamBuilder":
        return self._add(StreamAction.APPEND, target, component, partial, html, locals)

    def prepend(self, target: Any, component: Any = None, partial: Optional[str] = None,
                html: Optional[str] = None, locals: Optional[Mapping[str, Any]] = None) -> "StreamBuilder":
        return self._add(StreamAction.PREPEND, target, component, partial, html, locals)

    def replace(self, target: Any, component: Any = None, partial: Optional[str] = None,
                html: Optional[str] = None, locals: Optional[Mapping[str, Any]] = None) -> "StreamBuilder":
        return self._add(StreamAction.REPLACE, target, component, partial, html, locals)

    def update(self, target: Any, component: Any = None, partial: Optional[str] = None,
               html: Optional[str] = None, locals: Optional[Mapping[str, Any]] = None) -> "StreamBuilder":
        return self._add(StreamAction.UPDATE, target, component, partial, html, locals)

    def before(self, target: Any, component: Any = None, partial: Optional[str] = None,
               html: Optional[str] = None, locals: Optional[Mapping[str, Any]] = None) -> "StreamBuilder":
        return self._add(StreamAction.BEFORE, target, component, partial, html, locals)

    def after(self, target: Any, component: Any = None, partial: Optional[str] = None,
              html: Optional[str] = None, locals: Optional[Mapping[str, Any]] = None) -> "StreamBuilder":
        return self._add(StreamAction.AFTER, target, component, partial, html, locals)

    def remove(self, target: Any) -> "StreamBuilder":
        return self._add(StreamAction.REMOVE, target)

    def refresh(self) -> "StreamBuilder":
        return self._add(StreamAction.REFRESH, None)

    def flash(self, type: str = "notice", message: Optional[str] = None) -> "StreamBuilder":
        """Update the flash container with one message."""
        return self.update(
            self._flash_target, partial=self._flash_partial, locals={"type": type, "message": message}
        )

    def form_errors(self, errors: Any = None, target: Optional[str] = None) -> "StreamBuilder":
        return self.update(
            target or self._form_errors_target, partial=self._form_errors_partial, locals={"errors": errors}
        )

    def build(self) -> Tuple[StreamOp, ...]:
        return tuple(self._ops)
