"""
Registry of declared actions for one controller class. Controllers look up by action name.
Registries are immutable: register() and merge() return a new registry, so a subclass
can extend its parent's actions without touching the parent.
"""
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from actionflow.actions.protocol import ActionConfig


class ActionRegistry:
    def __init__(self, actions: Optional[Mapping[str, ActionConfig]] = None):
        self._actions: Mapping[str, ActionConfig] = MappingProxyType(dict(actions or {}))

    def register(self, config: ActionConfig) -> "ActionRegistry":
        """Later registration under the same name replaces the earlier one."""
        if not config.name:
            raise ValueError("action config has no name")
        return ActionRegistry({**self._actions, config.name: config})

    def merge(self, other: "ActionRegistry") -> "ActionRegistry":
        return ActionRegistry({**self._actions, **other._actions})

    def get(self, name: str) -> Optional[ActionConfig]:
        if not name:
            return None
        return self._actions.get(str(name).strip())

    def as_dict(self) -> Dict[str, ActionConfig]:
        return dict(self._actions)

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __iter__(self) -> Iterator[str]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)
