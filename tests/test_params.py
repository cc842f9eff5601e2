from datetime import date

import pytest

from actionflow.actions.params import (
    param,
    permit,
    project,
    validate_param_schema,
    validate_required_params,
)
from actionflow.api.request import parse_nested_params
from actionflow.errors import ParameterError, ParameterMissing


def test_allow_list_without_root_key() -> None:
    assert project({"a": 1, "b": 2, "c": 3}, None, ["a", "c"]) == {"a": 1, "c": 3}


def test_no_allow_list_passes_everything_but_routing_metadata() -> None:
    assert project({"a": 1}, None, []) == {"a": 1}
    assert project({"a": 1, "controller": "x", "action": "y", "format": "json"}, None, None) == {"a": 1}


def test_root_key_present() -> None:
    payload = {"widget": {"name": "w", "admin": True}, "page": 2}
    assert project(payload, "widget", ["name"]) == {"name": "w"}
    assert project(payload, "widget", None) == {"name": "w", "admin": True}


def test_root_key_missing_falls_back_to_payload() -> None:
    payload = {"name": "w", "action": "create"}
    assert project(payload, "widget", ["name"]) == {"name": "w"}


def test_scalar_entries_drop_nested_values() -> None:
    assert permit({"name": {"evil": 1}, "age": 3}, ["name", "age"]) == {"age": 3}


def test_nested_allow_list_entries() -> None:
    source = {
        "tags": ["a", "b", {"x": 1}],
        "address": {"street": "Main", "zip": "1", "secret": "s"},
        "items": [{"sku": "1", "price": 2}, "junk"],
        "meta": {"anything": [1, 2]},
    }
    allowed = permit(source, [{"tags": []}, {"address": ["street", "zip"]}, {"items": ["sku"]}, {"meta": {}}])
    assert allowed == {
        "tags": ["a", "b"],
        "address": {"street": "Main", "zip": "1"},
        "items": [{"sku": "1"}],
        "meta": {"anything": [1, 2]},
    }


def test_typed_param_lookup() -> None:
    params = {"n": "42", "on": "false", "day": "2024-01-31", "tags": "a, b", "blank": ""}
    assert param(params, "n", type="integer") == 42
    assert param(params, "on", type="boolean") is False
    assert param(params, "day", type="date") == date(2024, 1, 31)
    assert param(params, "tags", type="array") == ["a", "b"]
    assert param(params, "blank", default="d") == "d"
    assert param(params, "missing") is None


def test_typed_param_errors() -> None:
    with pytest.raises(ParameterMissing) as missing:
        param({}, "id", required=True)
    assert missing.value.errors == {"id": ["is required"]}
    with pytest.raises(ParameterError):
        param({"n": "abc"}, "n", type="integer")


def test_required_params() -> None:
    validate_required_params({"a": 1, "b": False}, "a", "b")
    with pytest.raises(ParameterError) as err:
        validate_required_params({"a": ""}, "a", "b")
    assert set(err.value.errors) == {"a", "b"}


def test_param_schema_collects_all_failures() -> None:
    schema = {
        "status": {"required": True, "in": ["open", "closed"]},
        "count": {"type": "integer"},
        "code": {"format": r"[A-Z]{3}"},
        "note": {},
    }
    validate_param_schema({"status": "open", "count": "3", "code": "ABC"}, schema)
    with pytest.raises(ParameterError) as err:
        validate_param_schema({"status": "weird", "count": "x", "code": "abc"}, schema)
    assert set(err.value.errors) == {"status", "count", "code"}


def test_parse_nested_params() -> None:
    pairs = [("widget[name]", "w"), ("widget[tags][]", "a"), ("widget[tags][]", "b"), ("page", "2")]
    assert parse_nested_params(pairs) == {"widget": {"name": "w", "tags": ["a", "b"]}, "page": "2"}
