"""
PageConfig: a page description made of named components plus meta (page_type, klass, title...).
Page classes and services may return a plain dict; normalize_page_config() wraps it.
"""
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from actionflow.inflection import is_present

_META_KEYS = ("page_type", "klass", "title", "layout", "component")


class PageConfig:
    def __init__(self, components: Optional[Mapping[str, Any]] = None, meta: Optional[Mapping[str, Any]] = None):
        self.components: Dict[str, Any] = dict(components or {})
        self.meta: Dict[str, Any] = dict(meta or {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageConfig":
        """
        Top-level meta keys go to meta, everything else is a component.
        Explicit "meta" and "components" mappings are merged in too.
        """
        meta = dict(data.get("meta") or {})
        components = {}
        nested = data.get("components")
        if isinstance(nested, Mapping):
            components.update(nested)
        for key, value in data.items():
            if key == "meta" or (key == "components" and isinstance(nested, Mapping)):
                continue
            if key in _META_KEYS:
                meta[key] = value
            else:
                components[key] = value
        return cls(components, meta)

    def __getitem__(self, key: str) -> Any:
        if key in self.components:
            return self.components[key]
        return self.meta[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name in ("components", "meta"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __contains__(self, key: object) -> bool:
        return key in self.components or key in self.meta

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        """Destructuring: components, meta = page_config."""
        return iter((self.components, self.meta))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageConfig):
            return NotImplemented
        return self.components == other.components and self.meta == other.meta

    def dig(self, *keys: Any) -> Any:
        node: Any = self
        for key in keys:
            if isinstance(node, (PageConfig, Mapping)):
                node = node.get(key)
            elif isinstance(node, (list, tuple)) and isinstance(key, int):
                node = node[key] if -len(node) <= key < len(node) else None
            else:
                return None
            if node is None:
                return None
        return node

    def has_component(self, name: str) -> bool:
        return is_present(self.components.get(name))

    def component_names(self) -> List[str]:
        return list(self.components.keys())

    def present_components(self) -> List[Tuple[str, Any]]:
        return [(k, v) for k, v in self.components.items() if is_present(v)]

    @property
    def page_type(self) -> Optional[str]:
        return self.meta.get("page_type")

    @property
    def klass(self) -> Any:
        return self.meta.get("klass")

    def to_dict(self) -> Dict[str, Any]:
        return {**self.components, "meta": dict(self.meta)}

    def __repr__(self) -> str:
        return f"PageConfig(components={self.component_names()!r}, meta={self.meta!r})"


def normalize_page_config(value: Any) -> Any:
    """dict -> PageConfig; PageConfig and None pass through; anything else is kept as returned."""
    if value is None or isinstance(value, PageConfig):
        return value
    if isinstance(value, Mapping):
        return PageConfig.from_dict(value)
    return value
