"""
FastAPI app factory: mounts controller routers, adds /health, configures logging.
"""
from typing import Iterable, Mapping, Optional, Union

from fastapi import FastAPI

from actionflow.api.controller import ActionController
from actionflow.logging_utils import setup_logging

Controllers = Union[Iterable[ActionController], Mapping[str, ActionController]]


def create_app(
    controllers: Controllers = (),
    title: str = "actionflow",
    version: str = "0.1.0",
    configure_logging: bool = True,
    log_level: Optional[str] = None,
) -> FastAPI:
    """Controllers may be given as a list (mounted at /<controller_name>) or a {prefix: controller} map."""
    if configure_logging:
        setup_logging(log_level)

    app = FastAPI(title=title, version=version)

    if isinstance(controllers, Mapping):
        mounts = list(controllers.items())
    else:
        mounts = [(None, c) for c in controllers]
    for prefix, controller in mounts:
        app.include_router(controller.router(prefix))

    @app.get("/health")
    def health():
        return {"ok": True, "controllers": [c.controller_name() for _, c in mounts]}

    return app
