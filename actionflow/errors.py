"""
Exception types raised by actionflow and by services running under it.
The error classifier maps these to categories (not_found / validation / authorization).
"""
from typing import Any, Dict, Mapping, Optional


class ActionflowError(Exception):
    """Base class for library errors."""


class ActionNotRegisteredError(ActionflowError, LookupError):
    def __init__(self, controller: str, action: str):
        self.controller = controller
        self.action = action
        super().__init__(f"action '{action}' is not registered on {controller}")


class NotFoundError(ActionflowError):
    """Resource lookup failed."""


class ValidationError(ActionflowError):
    """Invalid input; errors maps field -> list of messages."""

    def __init__(self, message: str = "Validation failed", errors: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.errors: Dict[str, Any] = dict(errors or {})


class ParameterError(ValidationError):
    """A request parameter failed a declared rule."""


class ParameterMissing(ParameterError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"param is missing or the value is empty: {key}", {key: ["is required"]})


class AuthorizationError(ActionflowError):
    """Actor may not perform the action. decision carries the blocking policy decision, if any."""

    def __init__(self, message: str = "Not authorized", decision: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.decision = dict(decision) if decision else None


class ServiceError(ActionflowError):
    """
    Raised when a wrapped service result reports failure.
    meta may carry message, status, and errors; resource is the failed record, if any.
    """

    def __init__(self, resource: Any = None, meta: Optional[Mapping[str, Any]] = None):
        self.resource = resource
        self.meta: Dict[str, Any] = dict(meta or {})
        super().__init__(self.meta.get("message") or "Operation failed")

    @property
    def errors(self) -> Any:
        if self.meta.get("errors") is not None:
            return self.meta["errors"]
        return getattr(self.resource, "errors", None)


class MissingPartialError(ActionflowError, LookupError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no partial registered for '{path}'")


class MethodNotOverriddenError(ActionflowError, NotImplementedError):
    """A controller hook that subclasses must provide was called on the base class."""

    def __init__(self, method_name: str, owner: Any = None):
        owner_name = type(owner).__name__ if owner is not None else "controller"
        super().__init__(f"{owner_name} must override {method_name}()")
