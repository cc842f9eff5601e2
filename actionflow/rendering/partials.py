"""
Partials are plain callables fn(**locals) -> str registered under a path.
The default registry carries shared/flash and shared/form_errors.
"""
from html import escape
from typing import Any, Callable, Dict, Mapping, Optional

from actionflow.errors import MissingPartialError

PartialFn = Callable[..., str]


class PartialRegistry:
    def __init__(self, partials: Optional[Mapping[str, PartialFn]] = None):
        self._partials: Dict[str, PartialFn] = dict(partials or {})

    def register(self, path: str, fn: Optional[PartialFn] = None):
        """Register directly or as a decorator: @partials.register("users/user")."""
        def add(f: PartialFn) -> PartialFn:
            self._partials[path] = f
            return f

        if fn is None:
            return add
        return add(fn)

    def copy(self) -> "PartialRegistry":
        return PartialRegistry(self._partials)

    def __contains__(self, path: object) -> bool:
        return path in self._partials

    def render(self, path: str, locals: Optional[Mapping[str, Any]] = None) -> str:
        try:
            fn = self._partials[path]
        except KeyError:
            raise MissingPartialError(path) from None
        return fn(**dict(locals or {}))


def render_flash(flash: Optional[Mapping[str, Any]] = None, type: Optional[str] = None,
                 message: Optional[str] = None, **_: Any) -> str:
    messages: Dict[str, Any] = dict(flash or {})
    if type and message:
        messages[type] = message
    items = "".join(
        f'<div class="flash flash-{escape(str(kind))}">{escape(str(text))}</div>'
        for kind, text in messages.items()
        if text
    )
    return f'<div id="flash">{items}</div>'


def render_form_errors(errors: Any = None, **_: Any) -> str:
    if not errors:
        return '<div id="form_errors"></div>'
    if isinstance(errors, Mapping):
        lines = []
        for field, messages in errors.items():
            if isinstance(messages, (list, tuple)):
                lines.extend(f"{field} {m}" for m in messages)
            else:
                lines.append(f"{field} {messages}")
    elif isinstance(errors, (list, tuple)):
        lines = [str(e) for e in errors]
    else:
        lines = [str(errors)]
    items = "".join(f"<li>{escape(line)}</li>" for line in lines)
    return f'<div id="form_errors"><ul>{items}</ul></div>'


def default_partials() -> PartialRegistry:
    return PartialRegistry({"shared/flash": render_flash, "shared/form_errors": render_form_errors})
