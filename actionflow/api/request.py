"""
Framework-neutral inbound request: params, headers, cookies, negotiated format, Turbo helpers.
ActionRequest.from_starlette() builds one from a Starlette/FastAPI request.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

from starlette.requests import Request

from actionflow.actions.protocol import Format
from actionflow.errors import ParameterError

TURBO_STREAM_MIME = "text/vnd.turbo-stream.html"

_EXTENSION_FORMATS = {
    "json": Format.JSON,
    "csv": Format.CSV,
    "xml": Format.XML,
    "html": Format.HTML,
    "turbo_stream": Format.TURBO_STREAM,
}

_ACCEPT_FORMATS: List[Tuple[str, Format]] = [
    ("application/json", Format.JSON),
    ("text/csv", Format.CSV),
    ("application/xml", Format.XML),
    ("text/xml", Format.XML),
    ("text/html", Format.HTML),
    ("application/xhtml+xml", Format.HTML),
    ("*/*", Format.HTML),
]

_KEY_PART = re.compile(r"\[([^\]]*)\]")


def negotiate_format(
    params: Mapping[str, Any],
    headers: Mapping[str, str],
    path: str = "",
    turbo_enabled: bool = True,
) -> str:
    """
    Explicit `format` param, then path extension, then Accept header.
    Returns a Format value, or the raw requested tag when nothing known matches.
    """
    explicit = params.get("format")
    if explicit:
        explicit = str(explicit).lower()
        return _EXTENSION_FORMATS.get(explicit, explicit)

    last_segment = path.rsplit("/", 1)[-1]
    if "." in last_segment:
        ext = last_segment.rsplit(".", 1)[-1].lower()
        if ext in _EXTENSION_FORMATS:
            return _EXTENSION_FORMATS[ext]

    accept = (headers.get("accept") or "").lower()
    if not accept.strip():
        return Format.HTML
    if TURBO_STREAM_MIME in accept:
        if turbo_enabled:
            return Format.TURBO_STREAM
    mimes = [part.split(";", 1)[0].strip() for part in accept.split(",")]
    for mime in mimes:
        for known, fmt in _ACCEPT_FORMATS:
            if mime == known:
                return fmt
    for mime in mimes:
        if mime.endswith("/*"):
            return Format.HTML
    return mimes[0].rsplit("/", 1)[-1] if mimes else Format.HTML


def split_format_extension(path_params: Mapping[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
    """Strip a known format extension off the last path param: {"id": "1.json"} -> ({"id": "1"}, "json")."""
    out = dict(path_params)
    if not out:
        return out, None
    key = list(out)[-1]
    value = out[key]
    if not isinstance(value, str) or "." not in value:
        return out, None
    stem, ext = value.rsplit(".", 1)
    if not stem or ext.lower() not in _EXTENSION_FORMATS:
        return out, None
    out[key] = stem
    return out, ext.lower()


def parse_nested_params(pairs: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Rails-style bracket keys: user[name]=a -> {"user": {"name": "a"}};
    user[tags][]=x -> {"user": {"tags": ["x"]}}.
    """
    out: Dict[str, Any] = {}
    for raw_key, value in pairs:
        head = raw_key.split("[", 1)[0]
        parts = [head] + _KEY_PART.findall(raw_key[len(head):])
        node: Dict[str, Any] = out
        for i, part in enumerate(parts):
            last = i == len(parts) - 1
            nxt = None if last else parts[i + 1]
            if last:
                node[part] = value
            elif nxt == "":
                node.setdefault(part, [])
                if isinstance(node[part], list):
                    node[part].append(value)
                break
            else:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
    return out


@dataclass
class ActionRequest:
    """Everything the engine needs from an HTTP request; headers keys are lowercased."""

    method: str = "GET"
    path: str = "/"
    params: Dict[str, Any] = field(default_factory=dict)
    path_params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    user: Any = None
    requested_format: Optional[str] = None
    raw: Optional[Request] = None

    def __post_init__(self) -> None:
        self.headers = {str(k).lower(): v for k, v in (self.headers or {}).items()}

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    def negotiated_format(self, turbo_enabled: bool = True) -> str:
        if self.requested_format:
            return _EXTENSION_FORMATS.get(self.requested_format, self.requested_format)
        return negotiate_format(self.params, self.headers, self.path, turbo_enabled)

    @property
    def format(self) -> str:
        return self.negotiated_format()

    @property
    def turbo_frame_request(self) -> bool:
        return bool(self.header("turbo-frame"))

    @property
    def current_turbo_frame(self) -> Optional[str]:
        return self.header("turbo-frame")

    @property
    def turbo_stream_request(self) -> bool:
        return TURBO_STREAM_MIME in (self.header("accept") or "")

    @property
    def turbo_native_app(self) -> bool:
        return "Turbo Native" in (self.header("user-agent") or "")

    def url_for(self, name: str, **path_params: Any) -> str:
        if self.raw is None:
            raise LookupError(f"cannot resolve route '{name}' without a live request")
        return str(self.raw.url_for(name, **path_params))

    @classmethod
    async def from_starlette(cls, request: Request, user: Any = None) -> "ActionRequest":
        """
        Merge query, body (JSON or urlencoded form) and path params; path params win.
        A format extension on the last path param (/widgets/1.json) is stripped off.
        Raises ParameterError for a body that cannot be decoded.
        """
        params: Dict[str, Any] = parse_nested_params(request.query_params.multi_items())
        content_type = (request.headers.get("content-type") or "").lower()
        body = await request.body()
        if body:
            try:
                if "application/json" in content_type:
                    payload = json.loads(body)
                    if isinstance(payload, dict):
                        params.update(payload)
                    else:
                        params["_json"] = payload
                elif "application/x-www-form-urlencoded" in content_type:
                    form = parse_nested_params(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
                    params.update(form)
            except ValueError as e:
                raise ParameterError("request body could not be parsed", {"body": [str(e)]}) from e
        path_params, requested_format = split_format_extension(request.path_params)
        if params.get("format"):
            requested_format = None
        params.update(path_params)
        if user is None:
            user = getattr(request.state, "user", None)
        return cls(
            method=request.method.upper(),
            path=request.url.path,
            params=params,
            path_params=path_params,
            headers=dict(request.headers),
            cookies=dict(request.cookies),
            user=user,
            requested_format=requested_format,
            raw=request,
        )
