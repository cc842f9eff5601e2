from types import SimpleNamespace

import pytest

from actionflow.actions.policies import (
    PredicatePolicy,
    RequireUserPolicy,
    applicable_policies,
    run_policies,
)
from actionflow.actions.protocol import ActionConfig
from actionflow.actions.registry import ActionRegistry
from actionflow.inflection import dasherize, humanize, is_blank, singularize, underscore


def test_registry_is_immutable() -> None:
    empty = ActionRegistry()
    one = empty.register(ActionConfig(name="index"))
    two = one.register(ActionConfig(name="show"))

    assert len(empty) == 0
    assert list(one) == ["index"]
    assert list(two) == ["index", "show"]
    assert two.get(" show ") == ActionConfig(name="show")
    assert two.get("") is None
    with pytest.raises(ValueError):
        empty.register(ActionConfig(name=""))


def test_registry_merge_prefers_other() -> None:
    base = ActionRegistry({"index": ActionConfig(name="index", options={"v": 1})})
    override = ActionRegistry({"index": ActionConfig(name="index", options={"v": 2})})
    assert base.merge(override).get("index").options["v"] == 2


def test_first_block_wins() -> None:
    ctx = SimpleNamespace(current_user=None)
    policies = [
        RequireUserPolicy(),
        PredicatePolicy("never", lambda c: False, code="NEVER"),
    ]
    allowed, decision = run_policies(policies, ctx)
    assert allowed is False
    assert decision["code"] == "UNAUTHENTICATED"

    ctx.current_user = "ada"
    allowed, decision = run_policies(policies, ctx)
    assert decision == {
        "allowed": False,
        "code": "NEVER",
        "message": "You are not allowed to perform this action",
        "detail": {"policy": "never"},
    }
    assert run_policies([], ctx) == (True, None)


def test_policy_exceptions_propagate() -> None:
    def broken(ctx):
        raise RuntimeError("policy store down")

    with pytest.raises(RuntimeError):
        run_policies([PredicatePolicy("broken", broken)], SimpleNamespace())


def test_skip_flags_filter_by_kind() -> None:
    policies = [RequireUserPolicy(), PredicatePolicy("p", lambda c: True)]
    skip_auth = ActionConfig(name="x", skip_authentication=True)
    skip_both = ActionConfig(name="x", skip_authentication=True, skip_authorization=True)
    assert [p.name for p in applicable_policies(policies, skip_auth)] == ["p"]
    assert applicable_policies(policies, skip_both) == []


def test_inflection_helpers() -> None:
    assert underscore("AdminUsers") == "admin_users"
    assert underscore("HTMLPage") == "html_page"
    assert [singularize(w) for w in ("categories", "boxes", "class", "users", "")] == ["category", "box", "class", "user", ""]
    assert humanize("author_id") == "Author"
    assert dasherize("first_name") == "first-name"
    assert is_blank("  ") and is_blank([]) and is_blank(None) and not is_blank(0)
