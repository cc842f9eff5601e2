"""
View components: classes built with keyword locals that render through render(), __html__() or str().
"""
from typing import Any, Dict, Iterable, Mapping, Optional

from actionflow.inflection import is_present


def render_component_html(component: Any) -> str:
    render = getattr(component, "render", None)
    if callable(render):
        return str(render())
    html = getattr(component, "__html__", None)
    if callable(html):
        return str(html())
    return str(component)


def build_component_locals(
    base: Optional[Mapping[str, Any]] = None,
    result: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Declared locals plus result / resource / collection when present."""
    out = dict(base or {})
    if is_present(result):
        out["result"] = result
        if result.get("resource") is not None:
            out["resource"] = result["resource"]
        if is_present(result.get("collection")):
            out["collection"] = result["collection"]
    return out


def render_component(component_class: Any, locals: Optional[Mapping[str, Any]] = None) -> str:
    return render_component_html(component_class(**dict(locals or {})))


def render_component_collection(
    component_class: Any,
    items: Iterable[Any],
    item_key: str = "item",
    locals: Optional[Mapping[str, Any]] = None,
) -> str:
    extra = dict(locals or {})
    return "".join(render_component(component_class, {**extra, item_key: item}) for item in items)


def find_page_component(page_config: Any, registry: Optional[Mapping[str, Any]] = None) -> Any:
    """klass meta, then the registry entry for page_type, then an explicit "component" entry."""
    if page_config is None:
        return None
    klass = getattr(page_config, "klass", None)
    if klass is not None:
        return klass
    page_type = getattr(page_config, "page_type", None)
    if page_type and registry and page_type in registry:
        return registry[page_type]
    getter = getattr(page_config, "get", None)
    return getter("component") if callable(getter) else None
