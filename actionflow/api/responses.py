"""
JSON response envelope: {"data": ..., "meta": {"version": api_version, ...}}.
"""
from collections.abc import Mapping
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.responses import JSONResponse

from actionflow.serializers import to_serializable
from actionflow.settings import get_settings


def build_response(data: Any = None, meta: Optional[Mapping[str, Any]] = None,
                   api_version: Optional[str] = None) -> Dict[str, Any]:
    version = api_version if api_version is not None else get_settings().api_version
    return {
        "data": to_serializable(data),
        "meta": {"version": version, **to_serializable(dict(meta or {}))},
    }


def format_error(error: Any) -> Any:
    """
    pydantic error -> {messages, details}; other exceptions -> {type, message} (+ errors);
    mapping -> as is; str -> {message}; anything else -> {message: str(error)}.
    """
    if isinstance(error, PydanticValidationError):
        return {
            "messages": [f"{'.'.join(map(str, e['loc']))} {e['msg']}".strip() for e in error.errors()],
            "details": to_serializable(error.errors(include_url=False)),
        }
    if isinstance(error, BaseException):
        out: Dict[str, Any] = {"type": type(error).__name__, "message": str(error)}
        errors = getattr(error, "errors", None)
        if errors and not callable(errors):
            out["errors"] = to_serializable(errors)
        return out
    if isinstance(error, Mapping):
        return to_serializable(error)
    if isinstance(error, str):
        return {"message": error}
    return {"message": str(error)}


def respond_with_success(data: Any = None, status: int = 200, meta: Optional[Mapping[str, Any]] = None,
                         api_version: Optional[str] = None) -> JSONResponse:
    return JSONResponse(build_response(data, meta, api_version), status_code=status)


def respond_with_error(error: Any, status: int = 422, meta: Optional[Mapping[str, Any]] = None,
                       api_version: Optional[str] = None) -> JSONResponse:
    return JSONResponse(build_response({"error": format_error(error)}, meta, api_version), status_code=status)
