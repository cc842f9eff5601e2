from typing import Any, Dict, Optional

from actionflow.api.request import ActionRequest

ACCEPT = {
    "html": "text/html",
    "turbo_stream": "text/vnd.turbo-stream.html, text/html",
    "json": "application/json",
    "csv": "text/csv",
    "xml": "application/xml",
}


def make_request(
    fmt: str = "html",
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any,
) -> ActionRequest:
    merged_headers = {"Accept": ACCEPT.get(fmt, fmt)}
    merged_headers.update(headers or {})
    return ActionRequest(params=dict(params or {}), headers=merged_headers, **kwargs)
