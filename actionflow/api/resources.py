"""
ResourcesController: RESTful CRUD over a SQLAlchemy model, answered with the JSON envelope.
Subclasses set model (and optionally permitted_params / serializer) and override hooks as needed.
"""
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response

from actionflow.actions.params import project
from actionflow.api.controller import RESTFUL_ROUTES, ActionController
from actionflow.api.request import ActionRequest
from actionflow.db import get_session_factory, session_scope
from actionflow.db.pagination import Page, clamp_page_params, paginate, pagination_meta
from actionflow.errors import MethodNotOverriddenError, NotFoundError, ValidationError
from actionflow.serializers import Serializer, to_serializable

CRUD_ACTIONS = ("index", "show", "create", "update", "destroy")


class ResourcesController(ActionController):
    model: ClassVar[Any] = None
    permitted_params: ClassVar[Sequence[Any]] = ()
    serializer: ClassVar[Optional[type]] = None

    def __init__(self, *args: Any, session_factory: Optional[sessionmaker] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.session_factory = session_factory or get_session_factory()

    def resource_class(self) -> Any:
        if self.model is None:
            raise MethodNotOverriddenError("resource_class", self)
        return self.model

    def resource_scope(self, session: Session) -> Select:
        return select(self.resource_class())

    def find_resource(self, session: Session, ident: Any) -> Any:
        model = self.resource_class()
        pk = list(model.__mapper__.primary_key)[0]
        try:
            ident = pk.type.python_type(ident)
        except (TypeError, ValueError, NotImplementedError):
            pass
        resource = session.execute(self.resource_scope(session).where(pk == ident)).scalar_one_or_none()
        if resource is None:
            raise NotFoundError(f"{model.__name__} {ident} not found")
        return resource

    def resource_params(self, request: ActionRequest) -> Dict[str, Any]:
        params = project(request.params, self.params_root_key(), list(self.permitted_params))
        params.pop("id", None)
        return params

    def validate_resource(self, resource: Any) -> Dict[str, List[str]]:
        """Field -> messages; empty means valid."""
        return {}

    def serialize(self, data: Any) -> Any:
        if self.serializer is not None:
            serializer: Serializer = self.serializer()
            return serializer.serialize(data)
        return to_serializable(data)

    def index_meta(self, page: Optional[Page]) -> Dict[str, Any]:
        return pagination_meta(page) if page is not None else {}

    def show_meta(self, resource: Any) -> Dict[str, Any]:
        return {}

    def create_meta(self, resource: Any) -> Dict[str, Any]:
        return {}

    def update_meta(self, resource: Any) -> Dict[str, Any]:
        return {}

    def destroy_meta(self, resource: Any) -> Dict[str, Any]:
        return {}

    def _check_valid(self, resource: Any) -> None:
        errors = self.validate_resource(resource)
        if errors:
            raise ValidationError("Validation failed", errors)

    def index(self, request: ActionRequest) -> Response:
        def run() -> Response:
            with session_scope(self.session_factory) as session:
                stmt = self.resource_scope(session)
                if self.settings.pagination_enabled:
                    page_no, per_page = clamp_page_params(
                        request.params.get("page", 1),
                        request.params.get("per_page", self.settings.per_page),
                        self.settings.per_page,
                        self.settings.max_per_page,
                    )
                    page = paginate(session, stmt, page_no, per_page)
                    return self.respond_with_success(self.serialize(page.items), meta=self.index_meta(page))
                items = list(session.scalars(stmt))
                return self.respond_with_success(self.serialize(items), meta=self.index_meta(None))

        return self.execute_action(run)

    def show(self, request: ActionRequest) -> Response:
        def run() -> Response:
            with session_scope(self.session_factory) as session:
                resource = self.find_resource(session, request.params.get("id"))
                return self.respond_with_success(self.serialize(resource), meta=self.show_meta(resource))

        return self.execute_action(run)

    def create(self, request: ActionRequest) -> Response:
        def run() -> Response:
            with session_scope(self.session_factory) as session:
                resource = self.resource_class()(**self.resource_params(request))
                self._check_valid(resource)
                session.add(resource)
                session.flush()
                return self.respond_with_success(self.serialize(resource), status=201,
                                                 meta=self.create_meta(resource))

        return self.execute_action(run)

    def update(self, request: ActionRequest) -> Response:
        def run() -> Response:
            with session_scope(self.session_factory) as session:
                resource = self.find_resource(session, request.params.get("id"))
                for key, value in self.resource_params(request).items():
                    setattr(resource, key, value)
                self._check_valid(resource)
                session.flush()
                return self.respond_with_success(self.serialize(resource), meta=self.update_meta(resource))

        return self.execute_action(run)

    def destroy(self, request: ActionRequest) -> Response:
        def run() -> Response:
            with session_scope(self.session_factory) as session:
                resource = self.find_resource(session, request.params.get("id"))
                data = self.serialize(resource)
                session.delete(resource)
                session.flush()
                return self.respond_with_success(data, meta=self.destroy_meta(resource))

        return self.execute_action(run)

    def crud_endpoint(self, name: str) -> Callable[[Request], Any]:
        handler = getattr(self, name)

        async def run(request: Request) -> Response:
            action_request = await ActionRequest.from_starlette(request)
            return await run_in_threadpool(handler, action_request)

        run.__name__ = f"{self.controller_name()}_{name}"
        return run

    def extra_routes(self) -> Iterable[Tuple[str, List[str], str, Callable[[Request], Any]]]:
        declared = self.registered_actions()
        routes = []
        for name in CRUD_ACTIONS:
            if name in declared:
                continue
            methods, path = RESTFUL_ROUTES[name]
            routes.append((name, methods, path, self.crud_endpoint(name)))
        return routes
