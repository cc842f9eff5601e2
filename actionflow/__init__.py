"""
actionflow: declarative action / response dispatch for FastAPI controllers.
"""
from actionflow.actions.classify import ErrorClassifier, default_classifier, error_status
from actionflow.actions.context import ExecutionContext
from actionflow.actions.params import project
from actionflow.actions.policies import Policy, PredicatePolicy, RequireUserPolicy
from actionflow.actions.protocol import ActionConfig, ErrorCategory, Format, HandlerSet, StreamAction, StreamOp
from actionflow.actions.registry import ActionRegistry
from actionflow.actions.result import Result
from actionflow.api.app import create_app
from actionflow.api.controller import ActionController, action
from actionflow.api.request import ActionRequest
from actionflow.api.resources import ResourcesController
from actionflow.api.responses import build_response, format_error
from actionflow.dsl.action_builder import ActionBuilder
from actionflow.dsl.response_builder import ResponseBuilder
from actionflow.dsl.stream_builder import StreamBuilder
from actionflow.errors import (
    ActionNotRegisteredError,
    AuthorizationError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from actionflow.rendering.page_config import PageConfig
from actionflow.serializers import Serializer
from actionflow.settings import Settings, configure, get_settings

__version__ = "0.1.0"

__all__ = [
    "ActionBuilder",
    "ActionConfig",
    "ActionController",
    "ActionNotRegisteredError",
    "ActionRegistry",
    "ActionRequest",
    "AuthorizationError",
    "ErrorCategory",
    "ErrorClassifier",
    "ExecutionContext",
    "Format",
    "HandlerSet",
    "NotFoundError",
    "PageConfig",
    "Policy",
    "PredicatePolicy",
    "RequireUserPolicy",
    "ResourcesController",
    "ResponseBuilder",
    "Result",
    "Serializer",
    "ServiceError",
    "Settings",
    "StreamAction",
    "StreamBuilder",
    "StreamOp",
    "ValidationError",
    "action",
    "build_response",
    "configure",
    "create_app",
    "default_classifier",
    "error_status",
    "format_error",
    "get_settings",
    "project",
]
