"""
Turbo Stream wire format and Turbo helpers (dom_id, stream rendering, 303 redirects).
"""
from html import escape
from typing import Any, Callable, Iterable, Optional

from actionflow.actions.protocol import StreamAction, StreamOp
from actionflow.inflection import underscore

TURBO_STREAM_MEDIA_TYPE = "text/vnd.turbo-stream.html"


def dom_id(record: Any, prefix: Optional[str] = None) -> str:
    """user_1 for a persisted record, new_user for one without an id; prefix -> edit_user_1."""
    name = underscore(type(record).__name__)
    ident = getattr(record, "id", None)
    if ident is None:
        base = f"new_{name}"
        return f"{prefix}_{name}" if prefix else base
    base = f"{name}_{ident}"
    return f"{prefix}_{base}" if prefix else base


def stream_target(target: Any) -> Optional[str]:
    if target is None:
        return None
    if isinstance(target, str):
        return target
    return dom_id(target)


def turbo_stream_tag(action: str, target: Optional[str] = None, content: Optional[str] = None) -> str:
    target_attr = f' target="{escape(target, quote=True)}"' if target is not None else ""
    if content is None:
        return f'<turbo-stream action="{action}"{target_attr}></turbo-stream>'
    return f'<turbo-stream action="{action}"{target_attr}><template>{content}</template></turbo-stream>'


def render_stream_op(op: StreamOp, render_content: Callable[[StreamOp], str]) -> str:
    action = StreamAction(op.action)
    if action is StreamAction.REFRESH:
        return turbo_stream_tag(action.value)
    if action is StreamAction.REMOVE:
        return turbo_stream_tag(action.value, stream_target(op.target))
    return turbo_stream_tag(action.value, stream_target(op.target), render_content(op))


def render_streams(ops: Iterable[StreamOp], render_content: Callable[[StreamOp], str]) -> str:
    """render_content(op) supplies the template body for content-carrying actions."""
    return "\n".join(render_stream_op(op, render_content) for op in ops)
