"""
Error classification: exception -> ErrorCategory, result -> ErrorCategory, category -> HTTP status.
ErrorClassifier is an ordered rule list; first matching rule wins, unmatched falls into `any`.
"""
from typing import Any, Callable, List, Mapping, Optional, Tuple, Type, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException

from actionflow.actions.protocol import ErrorCategory
from actionflow.errors import AuthorizationError, NotFoundError, ValidationError
from actionflow.inflection import is_present

ERROR_STATUS = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.VALIDATION: 422,
    ErrorCategory.ANY: 500,
}

_ERROR_CODES = {
    "validation_error": ErrorCategory.VALIDATION,
    "database_error": ErrorCategory.VALIDATION,
    "authorization_error": ErrorCategory.AUTHORIZATION,
    "unauthorized": ErrorCategory.AUTHORIZATION,
    "resource_not_found": ErrorCategory.NOT_FOUND,
}

_HTTP_STATUS_CATEGORIES = {
    404: ErrorCategory.NOT_FOUND,
    401: ErrorCategory.AUTHORIZATION,
    403: ErrorCategory.AUTHORIZATION,
    400: ErrorCategory.VALIDATION,
    422: ErrorCategory.VALIDATION,
}

Predicate = Callable[[BaseException], bool]
Matcher = Union[Type[BaseException], Predicate, str]


def error_status(category: Any) -> int:
    """Total over the four categories; anything else raises ValueError."""
    return ERROR_STATUS[ErrorCategory(category)]


def _qualified_names(exc: BaseException) -> List[str]:
    names = []
    for klass in type(exc).__mro__:
        names.append(klass.__name__)
        names.append(f"{klass.__module__}.{klass.__qualname__}")
    return names


class ErrorClassifier:
    """
    Ordered (matcher, category) rules. A matcher is an exception type, a predicate,
    or a class name (bare or dotted) compared along the exception's MRO.
    """

    def __init__(self, rules: Optional[List[Tuple[Predicate, ErrorCategory]]] = None):
        self._rules: List[Tuple[Predicate, ErrorCategory]] = list(rules or [])

    def register(self, matcher: Matcher, category: Any) -> "ErrorClassifier":
        category = ErrorCategory(category)
        if isinstance(matcher, str):
            name = matcher
            predicate: Predicate = lambda exc: name in _qualified_names(exc)
        elif isinstance(matcher, type) and issubclass(matcher, BaseException):
            exc_type = matcher
            predicate = lambda exc: isinstance(exc, exc_type)
        elif callable(matcher):
            predicate = matcher
        else:
            raise TypeError(f"unsupported matcher: {matcher!r}")
        self._rules.append((predicate, category))
        return self

    def copy(self) -> "ErrorClassifier":
        return ErrorClassifier(self._rules)

    def classify(self, exc: BaseException) -> ErrorCategory:
        for predicate, category in self._rules:
            if predicate(exc):
                return category
        return ErrorCategory.ANY

    def status_for(self, exc: BaseException) -> int:
        return error_status(self.classify(exc))


def _http_exception_category(category: ErrorCategory) -> Predicate:
    statuses = {code for code, cat in _HTTP_STATUS_CATEGORIES.items() if cat is category}
    return lambda exc: isinstance(exc, HTTPException) and exc.status_code in statuses


def default_classifier() -> ErrorClassifier:
    classifier = ErrorClassifier()
    classifier.register(NotFoundError, ErrorCategory.NOT_FOUND)
    classifier.register(ValidationError, ErrorCategory.VALIDATION)
    classifier.register(AuthorizationError, ErrorCategory.AUTHORIZATION)
    classifier.register(NoResultFound, ErrorCategory.NOT_FOUND)
    classifier.register(IntegrityError, ErrorCategory.VALIDATION)
    classifier.register(PydanticValidationError, ErrorCategory.VALIDATION)
    for category in (ErrorCategory.NOT_FOUND, ErrorCategory.AUTHORIZATION, ErrorCategory.VALIDATION):
        classifier.register(_http_exception_category(category), category)
    return classifier


def determine_error_category(result: Optional[Mapping[str, Any]]) -> ErrorCategory:
    """Category for a failed result that carried no exception."""
    if not result:
        return ErrorCategory.ANY
    declared = result.get("error_type")
    if declared is not None:
        try:
            return ErrorCategory(declared)
        except ValueError:
            pass
    code = result.get("error_code")
    if code is not None and str(code) in _ERROR_CODES:
        return _ERROR_CODES[str(code)]
    if is_present(result.get("errors")) or is_present(result.get("validation_errors")):
        return ErrorCategory.VALIDATION
    return ErrorCategory.ANY
