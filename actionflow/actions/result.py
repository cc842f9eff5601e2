"""
Service results: the Result wrapper plus the adapter that turns any service return value
into the canonical dict shape (resource, collection, success, errors, message, ...).
"""
from collections.abc import Iterable, Mapping
from typing import Any, Dict, Optional

from actionflow.inflection import is_present

_CANONICAL_ATTRS = ("resource", "collection", "errors", "message", "error", "error_type", "page_config")


class Result:
    """Wrapped service result: a resource plus meta (success defaults to True)."""

    def __init__(self, resource: Any = None, meta: Optional[Mapping[str, Any]] = None, **extra: Any):
        self.resource = resource
        self.meta: Dict[str, Any] = {**dict(meta or {}), **extra}
        self.meta.setdefault("success", True)

    @classmethod
    def failure(cls, resource: Any = None, message: Optional[str] = None, **meta: Any) -> "Result":
        if message is not None:
            meta["message"] = message
        return cls(resource, {**meta, "success": False})

    @property
    def success(self) -> bool:
        return self.meta.get("success") is True

    @property
    def failed(self) -> bool:
        return not self.success

    @property
    def message(self) -> Optional[str]:
        return self.meta.get("message")

    @property
    def errors(self) -> Any:
        if "errors" in self.meta:
            return self.meta["errors"]
        return getattr(self.resource, "errors", None)

    def __getitem__(self, key: str) -> Any:
        return self.to_dict()[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.to_dict().get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "resource": self.resource,
            "collection": self.meta.get("collection"),
            "meta": dict(self.meta),
            "success": self.success,
            "message": self.message,
            "errors": self.errors,
            "error": self.meta.get("error"),
            "error_type": self.meta.get("error_type"),
            "page_config": self.meta.get("page_config"),
        }
        return {k: v for k, v in data.items() if v is not None}

    def __repr__(self) -> str:
        return f"Result(resource={self.resource!r}, meta={self.meta!r})"


def is_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping))


def is_wrapped_result(value: Any) -> bool:
    return hasattr(value, "resource") and isinstance(getattr(value, "meta", None), Mapping)


def _success_of(value: Any) -> Optional[bool]:
    for attr in ("success", "is_success"):
        if not hasattr(value, attr):
            continue
        flag = getattr(value, attr)
        if callable(flag):
            flag = flag()
        return bool(flag)
    return None


def unwrap_result(value: Any) -> Dict[str, Any]:
    """Flatten a wrapped result; meta keys override the derived ones."""
    resource = value.resource
    errors = getattr(value, "validation_errors", None)
    if errors is None:
        errors = getattr(value, "errors", None)
    out: Dict[str, Any] = {
        "resource": resource,
        "collection": resource if is_collection(resource) else None,
        "success": _success_of(value),
        "errors": errors,
        "error_type": value.meta.get("error_type"),
        "message": getattr(value, "message", None),
    }
    out.update(value.meta)
    return out


def normalize_result(raw: Any) -> Optional[Dict[str, Any]]:
    """
    None stays None (no service or nothing returned).
    Mappings pass through as dicts; wrapped results are unwrapped;
    other objects are adapted from whichever canonical attributes they expose.
    """
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        return dict(raw)
    if is_wrapped_result(raw):
        return unwrap_result(raw)
    out: Dict[str, Any] = {}
    for attr in _CANONICAL_ATTRS:
        if hasattr(raw, attr):
            out[attr] = getattr(raw, attr)
    success = _success_of(raw)
    if success is not None:
        out["success"] = success
    if not out:
        out["resource"] = raw
    if "collection" not in out and is_collection(out.get("resource")):
        out["collection"] = out["resource"]
    return out


def is_successful(result: Optional[Mapping[str, Any]], error: Optional[BaseException] = None) -> bool:
    """
    Failure when an error was captured; otherwise the explicit success flag decides.
    A result with no flag at all counts as success.
    """
    if error is not None:
        return False
    if result is None:
        return True
    if "success" in result and result["success"] is not None:
        return bool(result["success"])
    return True


def primary_data(result: Optional[Mapping[str, Any]]) -> Any:
    """collection, else resource (used for page classes and CSV/XML defaults)."""
    if not result:
        return None
    collection = result.get("collection")
    if is_present(collection):
        return collection
    return result.get("resource")
