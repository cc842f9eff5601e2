"""
Per-request execution context for one action run.
Holds the outcome (result / error / category / page config) and request-scoped flash and state.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from actionflow.actions.protocol import ActionConfig, ErrorCategory
from actionflow.api.request import ActionRequest


@dataclass
class ExecutionContext:
    """Created by the runner for each request; callbacks may write to state and flash."""

    request: ActionRequest
    config: ActionConfig
    controller: Any = None
    current_user: Any = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[BaseException] = None
    error_category: Optional[ErrorCategory] = None
    page_config: Any = None
    flash: Dict[str, Any] = field(default_factory=dict)
    flash_now: Dict[str, Any] = field(default_factory=dict)
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def action(self) -> str:
        return self.config.name

    @property
    def params(self) -> Dict[str, Any]:
        return self.request.params

    @property
    def resource(self) -> Any:
        return (self.result or {}).get("resource")

    @property
    def collection(self) -> Any:
        return (self.result or {}).get("collection")

    @property
    def errors(self) -> Any:
        return (self.result or {}).get("errors")

    def reset(self) -> None:
        self.result = None
        self.error = None
        self.error_category = None
        self.page_config = None

    def flash_messages(self) -> Dict[str, Any]:
        """Messages carried over from a redirect, overlaid with those set during this request."""
        return {**self.flash_now, **self.flash}
