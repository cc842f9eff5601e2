"""
ActionController: hosts declared actions, runs them, and mounts them on a FastAPI router.

    class UsersController(ActionController):
        resource_name = "users"

        @action()
        def create(a: ActionBuilder):
            a.service(CreateUser)
            a.permit("name", "email")
            a.on_success(lambda r: r.redirect_to("/users", notice="Created"))
            a.on_error("validation", lambda r: r.render_page())
"""
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import HTMLResponse, RedirectResponse, Response
from starlette.routing import NoMatchFound

from actionflow.actions.classify import ErrorClassifier, default_classifier
from actionflow.actions.policies import Policy
from actionflow.actions.protocol import ActionConfig
from actionflow.actions.registry import ActionRegistry
from actionflow.actions.result import is_wrapped_result
from actionflow.actions.runner import ActionRunner
from actionflow.api.request import ActionRequest
from actionflow.api.responses import respond_with_error, respond_with_success
from actionflow.api.service_responder import ServiceResponderMixin
from actionflow.dsl.action_builder import ActionBuilder
from actionflow.errors import ActionNotRegisteredError, ParameterError, ServiceError
from actionflow.flash import FlashStore, flash_store_from_settings
from actionflow.inflection import singularize, underscore
from actionflow.logging_utils import log_exception
from actionflow.rendering.partials import PartialRegistry, default_partials
from actionflow.settings import Settings, get_settings

RESTFUL_ROUTES: Dict[str, Tuple[List[str], str]] = {
    "index": (["GET"], ""),
    "new": (["GET"], "/new"),
    "create": (["POST"], ""),
    "show": (["GET"], "/{id}"),
    "edit": (["GET"], "/{id}/edit"),
    "update": (["PUT", "PATCH"], "/{id}"),
    "destroy": (["DELETE"], "/{id}"),
}


class ActionDeclaration:
    """Placeholder left in a class body by @action; replaced by an endpoint method on subclassing."""

    def __init__(self, name: str, configure: Optional[Callable[[ActionBuilder], Any]], options: Mapping[str, Any]):
        self.name = name
        self.configure = configure
        self.options = dict(options)

    def build(self) -> ActionConfig:
        settings = get_settings()
        builder = ActionBuilder(
            self.name,
            flash_partial=settings.flash_partial,
            form_errors_partial=settings.form_errors_partial,
            flash_target=settings.flash_target,
            form_errors_target=settings.form_errors_target,
            **self.options,
        )
        if self.configure is not None:
            self.configure(builder)
        return builder.build()


def action(name: Any = None, **options: Any):
    """Declare an action in a controller body: @action(), @action("publish", method="POST") or @action."""
    if callable(name):
        return ActionDeclaration(name.__name__, name, options)

    def decorator(fn: Callable[[ActionBuilder], Any]) -> ActionDeclaration:
        return ActionDeclaration(name or fn.__name__, fn, options)

    return decorator


def _action_method(name: str) -> Callable[..., Response]:
    def run_action(self: "ActionController", request: ActionRequest) -> Response:
        return self.dispatch(name, request)

    run_action.__name__ = name
    run_action.__doc__ = f"Run the declared '{name}' action."
    return run_action


class ActionController(ServiceResponderMixin):
    resource_name: ClassVar[str] = ""
    policies: ClassVar[Sequence[Policy]] = ()
    page_components: ClassVar[Mapping[str, Any]] = {}
    _registered_actions: ClassVar[ActionRegistry] = ActionRegistry()

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        registry = cls._registered_actions
        for attr, value in list(vars(cls).items()):
            if isinstance(value, ActionDeclaration):
                registry = registry.register(value.build())
                setattr(cls, attr, _action_method(value.name))
        cls._registered_actions = registry

    @classmethod
    def register_action(
        cls,
        name: str,
        configure: Optional[Callable[[ActionBuilder], Any]] = None,
        **options: Any,
    ) -> ActionConfig:
        config = ActionDeclaration(name, configure, options).build()
        cls._registered_actions = cls._registered_actions.register(config)
        setattr(cls, name, _action_method(name))
        return config

    @classmethod
    def registered_actions(cls) -> ActionRegistry:
        return cls._registered_actions

    def __init__(
        self,
        settings: Optional[Settings] = None,
        flash_store: Optional[FlashStore] = None,
        partials: Optional[PartialRegistry] = None,
        error_classifier: Optional[ErrorClassifier] = None,
        event_hook: Optional[Callable[[str, Dict[str, Any]], None]] = None,
    ):
        self.settings = settings or get_settings()
        self.flash_store = flash_store or flash_store_from_settings(self.settings)
        self.partials = partials or default_partials()
        self.error_classifier = error_classifier or default_classifier()
        self._runner = ActionRunner(self, event_hook)

    @classmethod
    def controller_name(cls) -> str:
        if cls.resource_name:
            return cls.resource_name
        name = cls.__name__
        if name.endswith("Controller"):
            name = name[: -len("Controller")]
        return underscore(name)

    def params_root_key(self) -> str:
        return singularize(self.controller_name())

    def action_config(self, name: str) -> ActionConfig:
        config = self._registered_actions.get(name)
        if config is None:
            raise ActionNotRegisteredError(type(self).__name__, name)
        return config

    def dispatch(self, name: str, request: ActionRequest) -> Response:
        """Run one action. Exceptions that escape the engine are answered here when detailed_errors is on."""
        config = self.action_config(name)
        try:
            return self._runner.run(config, request)
        except Exception as e:
            if not self.settings.detailed_errors:
                raise
            return self.handle_exception(e, action=name)

    def current_user(self, request: ActionRequest) -> Any:
        return request.user

    def flash_message(self, *keys: str) -> Optional[str]:
        catalog = self.settings.flash_messages
        for key in keys:
            if catalog.get(key):
                return catalog[key]
        return None

    def load_flash(self, request: ActionRequest) -> Dict[str, Any]:
        key = request.cookies.get(self.settings.flash_cookie)
        if not key:
            return {}
        return self.flash_store.pop(key)

    def persist_flash(self, ctx: Any, response: Response) -> None:
        """Keep this request's flash for the next one when redirecting; drop the consumed cookie."""
        cookie = self.settings.flash_cookie
        if 300 <= response.status_code < 400 and ctx.flash:
            key = self.flash_store.save(dict(ctx.flash))
            response.set_cookie(cookie, key, max_age=self.settings.flash_ttl_seconds, httponly=True, samesite="lax")
        elif ctx.request.cookies.get(cookie):
            response.delete_cookie(cookie)

    def route_name(self, action_name: str) -> str:
        return f"{self.controller_name()}.{action_name}"

    def resolve_path(self, path: Any, ctx: Any) -> str:
        """
        Callables get the context; URLs and absolute paths pass through; *_path / *_url
        helpers on the controller are called; anything else is looked up as a route name.
        """
        if callable(path):
            return str(path(ctx))
        path = str(path)
        if path.startswith("/") or "://" in path:
            return path
        helper = getattr(self, path, None)
        if callable(helper) and path.endswith(("_path", "_url")):
            return str(helper(ctx))
        resource_id = getattr(ctx.resource, "id", None) if ctx.resource is not None else None
        attempts: List[Tuple[str, Dict[str, Any]]] = [(self.route_name(path), {}), (path, {})]
        if resource_id is not None:
            attempts.insert(1, (self.route_name(path), {"id": resource_id}))
        for route, params in attempts:
            try:
                return ctx.request.url_for(route, **params)
            except (NoMatchFound, LookupError):
                continue
        raise LookupError(f"cannot resolve redirect target '{path}'")

    def render_view(self, ctx: Any, status: int = 200, layout: bool = True) -> Response:
        """Default render: a `<action>_view(ctx)` method when defined, else an empty response."""
        view = getattr(self, f"{ctx.action}_view", None)
        if callable(view):
            body = view(ctx)
            if isinstance(body, Response):
                return body
            return HTMLResponse(body or "", status_code=status)
        return Response(status_code=204 if status == 200 else status)

    def turbo_redirect_to(self, url: str) -> RedirectResponse:
        return RedirectResponse(url, status_code=303)

    def respond_with_success(self, data: Any = None, status: int = 200,
                             meta: Optional[Mapping[str, Any]] = None) -> Response:
        return respond_with_success(data, status=status, meta=meta, api_version=self.settings.api_version)

    def respond_with_error(self, error: Any, status: int = 422,
                           meta: Optional[Mapping[str, Any]] = None) -> Response:
        return respond_with_error(error, status=status, meta=meta, api_version=self.settings.api_version)

    def handle_exception(self, exc: Exception, **tags: Any) -> Response:
        log_exception(exc, enabled=self.settings.log_errors, controller=self.controller_name(), **tags)
        if isinstance(exc, ServiceError):
            return self.respond_with_error(exc, status=int(exc.meta.get("status") or 422))
        return self.respond_with_error(exc, status=self.error_classifier.status_for(exc))

    def execute_action(self, fn: Callable[[], Any], status: int = 200,
                       meta: Optional[Mapping[str, Any]] = None) -> Response:
        """Run fn(); wrap a plain return value in the success envelope, answer exceptions."""
        try:
            value = fn()
        except Exception as e:
            return self.handle_exception(e)
        if isinstance(value, Response):
            return value
        return self.respond_with_success(value, status=status, meta=meta)

    def unwrap(self, result: Any) -> Any:
        """Resource of a wrapped result; raises ServiceError when it reports failure."""
        if not is_wrapped_result(result):
            return result
        if result.meta.get("success") is not True:
            raise ServiceError(result.resource, result.meta)
        return result.resource

    def action_route(self, name: str, config: ActionConfig) -> Tuple[List[str], str]:
        options = config.options
        methods, path = RESTFUL_ROUTES.get(name, (["GET"], f"/{name}"))
        if name not in RESTFUL_ROUTES and options.get("member"):
            path = f"/{{id}}/{name}"
        if options.get("method"):
            method = options["method"]
            methods = [m.upper() for m in ([method] if isinstance(method, str) else method)]
        if options.get("path") is not None:
            path = options["path"]
        return methods, path

    def endpoint(self, name: str) -> Callable[[Request], Any]:
        async def run(request: Request) -> Response:
            try:
                action_request = await ActionRequest.from_starlette(request)
            except ParameterError as e:
                return self.handle_exception(e, action=name)
            return await run_in_threadpool(self.dispatch, name, action_request)

        run.__name__ = f"{self.controller_name()}_{name}"
        return run

    def extra_routes(self) -> Iterable[Tuple[str, List[str], str, Callable[[Request], Any]]]:
        """(name, methods, path, endpoint) for routes that are not declared actions."""
        return ()

    def router(self, prefix: Optional[str] = None) -> APIRouter:
        if prefix is None:
            prefix = f"/{self.controller_name()}"
        router = APIRouter(prefix=prefix, tags=[self.controller_name()])
        routes = [
            (name, *self.action_route(name, config), self.endpoint(name))
            for name, config in self._registered_actions.as_dict().items()
        ]
        routes.extend(self.extra_routes())
        # literal segments (/new) must be matched before /{id}
        routes.sort(key=lambda r: "{" in r[2])
        for name, methods, path, endpoint in routes:
            router.add_api_route(path, endpoint, methods=methods, name=self.route_name(name))
        return router
