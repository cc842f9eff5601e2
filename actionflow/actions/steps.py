"""
Default pipeline steps: reset → policies → before → service → page config → after.
"""
import inspect
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from actionflow.actions.classify import ErrorClassifier, default_classifier
from actionflow.actions.context import ExecutionContext
from actionflow.actions.params import merge_path_id, project
from actionflow.actions.pipeline import Step
from actionflow.actions.policies import Policy, applicable_policies, run_policies
from actionflow.actions.protocol import ErrorCategory
from actionflow.actions.result import normalize_result, primary_data
from actionflow.errors import AuthorizationError
from actionflow.logging_utils import log_event, log_exception
from actionflow.rendering.page_config import normalize_page_config

_CLASS_LEVEL = (staticmethod, classmethod)


class ResetStep(Step):
    name = "reset"

    def run(self, ctx: ExecutionContext) -> bool:
        ctx.reset()
        return True


class PolicyStep(Step):
    """First blocking policy ends the run on the authorization error path."""

    name = "policies"

    def __init__(self, policies: Sequence[Policy]):
        self._policies = list(policies)

    def run(self, ctx: ExecutionContext) -> bool:
        policies = applicable_policies(self._policies, ctx.config)
        if not policies:
            return True
        allowed, decision = run_policies(policies, ctx)
        if allowed or not decision:
            return True
        logger.info(log_event("POLICY_BLOCK", action=ctx.action, code=decision.get("code")))
        ctx.error = AuthorizationError(decision.get("message") or "Not authorized", decision)
        ctx.error_category = ErrorCategory.AUTHORIZATION
        ctx.result = {
            "success": False,
            "error": decision.get("message"),
            "error_code": decision.get("code"),
            "policy": dict(decision),
        }
        return False


class BeforeCallbacksStep(Step):
    name = "before"

    def run(self, ctx: ExecutionContext) -> bool:
        for callback in ctx.config.before_callbacks:
            callback(ctx)
        return True


def build_service_params(ctx: ExecutionContext) -> Dict[str, Any]:
    """{"params": projected request params (+ path id)}."""
    config = ctx.config
    root_key = config.params_key
    root_key_fn = getattr(ctx.controller, "params_root_key", None)
    if root_key is None and callable(root_key_fn):
        root_key = root_key_fn()
    projected = project(ctx.request.params, root_key, config.permitted_params)
    projected = merge_path_id(projected, ctx.request.path_params, ctx.request.params)
    return {"params": projected}


def _instantiate(service_class: type, service_params: Dict[str, Any], current_user: Any) -> Any:
    try:
        signature = inspect.signature(service_class)
    except (TypeError, ValueError):
        return service_class()
    positional = [
        p for p in signature.parameters.values()
        if p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if not positional:
        return service_class()
    if current_user is not None:
        return service_class(current_user, **service_params)
    return service_class(**service_params)


def invoke_service(service: Any, method: str, service_params: Dict[str, Any], current_user: Any = None) -> Any:
    """
    Class with a static/class method -> call it on the class.
    Other classes -> instantiate (no args, or current_user + params), then call the method.
    Plain callables without the method -> call them directly.
    """
    if inspect.isclass(service):
        if isinstance(inspect.getattr_static(service, method, None), _CLASS_LEVEL):
            return getattr(service, method)(**service_params)
        instance = _instantiate(service, service_params, current_user)
        return getattr(instance, method)(**service_params)
    bound = getattr(service, method, None)
    if callable(bound):
        return bound(**service_params)
    if callable(service):
        return service(**service_params)
    raise TypeError(f"service {service!r} has no callable '{method}'")


class ServiceStep(Step):
    """Invoke the configured service; exceptions become a failed result, never propagate."""

    name = "service"

    def __init__(self, classifier: Optional[ErrorClassifier] = None):
        self._classifier = classifier or default_classifier()

    def run(self, ctx: ExecutionContext) -> bool:
        config = ctx.config
        if config.service is None:
            return True
        service_params = build_service_params(ctx)
        try:
            raw = invoke_service(config.service, config.service_method, service_params, ctx.current_user)
        except Exception as e:
            ctx.error = e
            ctx.error_category = self._classifier.classify(e)
            log_exception(
                e,
                enabled=getattr(getattr(ctx.controller, "settings", None), "log_errors", None),
                action=ctx.action,
                category=ctx.error_category.value,
            )
            raw = {"success": False, "error": str(e), "exception": e}
        ctx.result = normalize_result(raw)
        return True


class PageConfigStep(Step):
    """
    Page config priority: embedded in the result (after the modifier runs),
    then the declared page class, then none.
    """

    name = "page_config"

    def run(self, ctx: ExecutionContext) -> bool:
        config = ctx.config
        embedded = (ctx.result or {}).get("page_config")
        if embedded is not None:
            page_config = normalize_page_config(embedded)
            if config.page_config_modifier is not None:
                modified = config.page_config_modifier(page_config)
                if modified is not None:
                    page_config = normalize_page_config(modified)
            ctx.page_config = page_config
            return True
        if config.page is not None:
            page = config.page(primary_data(ctx.result), user=ctx.current_user)
            builder = getattr(page, ctx.action, None)
            if callable(builder):
                value = builder()
            elif callable(page):
                value = page()
            else:
                raise TypeError(f"{type(page).__name__} has no method '{ctx.action}' and is not callable")
            ctx.page_config = normalize_page_config(value)
        return True


class AfterCallbacksStep(Step):
    name = "after"

    def run(self, ctx: ExecutionContext) -> bool:
        for callback in ctx.config.after_callbacks:
            callback(ctx, ctx.result)
        return True


def default_pipeline_steps(ctx: ExecutionContext) -> List[Step]:
    """Default steps; policies and classifier come from the controller when there is one."""
    controller = ctx.controller
    policies = list(getattr(controller, "policies", ()) or ())
    classifier = getattr(controller, "error_classifier", None)
    return [
        ResetStep(),
        PolicyStep(policies),
        BeforeCallbacksStep(),
        ServiceStep(classifier),
        PageConfigStep(),
        AfterCallbacksStep(),
    ]
