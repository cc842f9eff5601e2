"""
Parameter projection (strong-params style allow-lists), typed param lookup and param validation.
"""
import json
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from actionflow.errors import ParameterError, ParameterMissing
from actionflow.inflection import is_blank

ROUTING_METADATA = ("controller", "action", "format")

_SCALARS = (str, int, float, bool, Decimal, date, datetime, type(None))
_FALSE_VALUES = {"0", "f", "false", "off", "no", "n", ""}
_TRUE_VALUES = {"1", "t", "true", "on", "yes", "y"}


def strip_metadata(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in ROUTING_METADATA}


def _is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALARS)


def permit(source: Mapping[str, Any], allow_list: Sequence[Any]) -> Dict[str, Any]:
    """
    Keep only allowed keys. Entries: "name" (scalar), {"tags": []} (list of scalars),
    {"address": ["street", ...]} (nested mapping, or list of mappings), {"meta": {}} (any mapping).
    """
    out: Dict[str, Any] = {}
    for entry in allow_list:
        if isinstance(entry, Mapping):
            for key, rule in entry.items():
                if key not in source:
                    continue
                value = source[key]
                if isinstance(rule, Mapping) and not rule:
                    if isinstance(value, Mapping):
                        out[key] = dict(value)
                elif isinstance(rule, (list, tuple)) and not rule:
                    if isinstance(value, (list, tuple)):
                        out[key] = [v for v in value if _is_scalar(v)]
                elif isinstance(value, Mapping):
                    out[key] = permit(value, list(rule))
                elif isinstance(value, (list, tuple)):
                    out[key] = [permit(v, list(rule)) for v in value if isinstance(v, Mapping)]
        elif entry in source and _is_scalar(source[entry]):
            out[entry] = source[entry]
    return out


def project(
    payload: Mapping[str, Any],
    root_key: Optional[str] = None,
    allow_list: Optional[Sequence[Any]] = None,
) -> Dict[str, Any]:
    """
    Service params for a request. Reads payload[root_key] when given and present,
    otherwise the whole payload without routing metadata; an empty allow-list means
    no filtering.
    """
    source: Any = None
    if root_key is not None and isinstance(payload.get(root_key), Mapping):
        source = payload[root_key]
    if source is None:
        source = strip_metadata(payload)
    if not allow_list:
        return dict(source)
    return permit(source, allow_list)


def _cast_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _cast_array(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value]


def _cast_hash(value: Any) -> Dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, str):
        parsed = json.loads(value)
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"not a hash: {value!r}")


def _cast_json(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


_CASTERS = {
    "integer": int,
    "float": float,
    "string": str,
    "boolean": _cast_boolean,
    "date": lambda v: v if isinstance(v, date) else date.fromisoformat(str(v)),
    "datetime": lambda v: v if isinstance(v, datetime) else datetime.fromisoformat(str(v)),
    "array": _cast_array,
    "hash": _cast_hash,
    "json": _cast_json,
}


def cast_param(value: Any, type: str) -> Any:
    try:
        caster = _CASTERS[type]
    except KeyError:
        raise ValueError(f"unknown param type: {type}") from None
    return caster(value)


def param(
    params: Mapping[str, Any],
    key: str,
    type: Optional[str] = None,
    default: Any = None,
    required: bool = False,
) -> Any:
    """Typed lookup; blank values count as missing."""
    value = params.get(key)
    if is_blank(value) and value is not False:
        if required:
            raise ParameterMissing(key)
        return default
    if type is None:
        return value
    try:
        return cast_param(value, type)
    except (TypeError, ValueError) as e:
        raise ParameterError(f"invalid {type} for {key}: {e}", {key: [f"must be a valid {type}"]}) from e


def validate_required_params(params: Mapping[str, Any], *keys: str) -> None:
    missing = [k for k in keys if is_blank(params.get(k)) and params.get(k) is not False]
    if missing:
        raise ParameterError(
            f"missing required params: {', '.join(missing)}",
            {k: ["is required"] for k in missing},
        )


def validate_param_schema(params: Mapping[str, Any], schema: Mapping[str, Mapping[str, Any]]) -> None:
    """
    Rules per key: required (bool), type (see cast_param), in (allowed values), format (regex).
    Collects every failure before raising one ParameterError.
    """
    errors: Dict[str, List[str]] = {}
    for key, rules in schema.items():
        value = params.get(key)
        if is_blank(value) and value is not False:
            if rules.get("required"):
                errors.setdefault(key, []).append("is required")
            continue
        type_name = rules.get("type")
        if type_name:
            try:
                value = cast_param(value, type_name)
            except (TypeError, ValueError):
                errors.setdefault(key, []).append(f"must be a valid {type_name}")
                continue
        allowed = rules.get("in")
        if allowed is not None and value not in allowed:
            errors.setdefault(key, []).append(f"must be one of: {', '.join(map(str, allowed))}")
        pattern = rules.get("format")
        if pattern is not None and not re.fullmatch(pattern, str(value)):
            errors.setdefault(key, []).append("has an invalid format")
    if errors:
        raise ParameterError("invalid params: " + ", ".join(errors), errors)


def merge_path_id(params: Dict[str, Any], path_params: Mapping[str, Any], request_params: Mapping[str, Any]) -> Dict[str, Any]:
    ident = path_params.get("id", request_params.get("id"))
    if ident is not None:
        params = {**params, "id": ident}
    return params

