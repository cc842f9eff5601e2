"""
Policy protocol and runner: check(ctx) -> PolicyDecision, first block wins.
A policy's kind ("authentication" / "authorization") lets an action skip it via
skip_authentication / skip_authorization. Exceptions raised by check() propagate.
"""
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypedDict

AUTHENTICATION = "authentication"
AUTHORIZATION = "authorization"


class PolicyDecision(TypedDict):
    allowed: bool
    code: str
    message: str
    detail: Optional[Any]


def allow(message: str = "ok") -> PolicyDecision:
    return {"allowed": True, "code": "OK", "message": message, "detail": None}


def block(code: str, message: str, detail: Any = None) -> PolicyDecision:
    return {"allowed": False, "code": code, "message": message, "detail": detail}


class Policy:
    """Pluggable guardrail run before the action's callbacks and service."""

    name: str = ""
    kind: str = AUTHORIZATION

    def check(self, ctx: Any) -> PolicyDecision:
        """Return allowed=True to pass; allowed=False to block this request."""
        raise NotImplementedError


class RequireUserPolicy(Policy):
    """Blocks requests with no current user."""

    name = "require_user"
    kind = AUTHENTICATION

    def check(self, ctx: Any) -> PolicyDecision:
        if ctx.current_user is None:
            return block("UNAUTHENTICATED", "You need to sign in first")
        return allow()


class PredicatePolicy(Policy):
    """Wraps predicate(ctx) -> bool; blocks with the given code when it returns False."""

    def __init__(
        self,
        name: str,
        predicate: Callable[[Any], bool],
        kind: str = AUTHORIZATION,
        code: str = "FORBIDDEN",
        message: str = "You are not allowed to perform this action",
    ):
        self.name = name
        self.kind = kind
        self._predicate = predicate
        self._code = code
        self._message = message

    def check(self, ctx: Any) -> PolicyDecision:
        if self._predicate(ctx):
            return allow()
        return block(self._code, self._message, {"policy": self.name})


def applicable_policies(policies: Sequence[Policy], config: Any) -> List[Policy]:
    out = []
    for policy in policies:
        if policy.kind == AUTHENTICATION and config.skip_authentication:
            continue
        if policy.kind == AUTHORIZATION and config.skip_authorization:
            continue
        out.append(policy)
    return out


def run_policies(policies: Sequence[Policy], ctx: Any) -> Tuple[bool, Optional[PolicyDecision]]:
    """Run each policy in order. First allowed=False returns (False, decision)."""
    for policy in policies:
        decision = policy.check(ctx)
        if not decision.get("allowed", True):
            return False, decision
    return True, None
