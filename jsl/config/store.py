# Path: jsl/config/store.py
from __future__ import annotations
import copy
import logging
from typing import Any, Dict, Iterable, Mapping

from .loader import load_source

logger = logging.getLogger(__name__)

_MISSING = object()


def merge_override(target: Dict[str, Any], incoming: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge where `incoming` wins on every leaf."""
    for key, value in incoming.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merge_override(current, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


def merge_fill_gaps(target: Dict[str, Any], incoming: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge where values already in `target` are never replaced."""
    for key, value in incoming.items():
        if key not in target:
            target[key] = copy.deepcopy(value)
            continue
        current = target[key]
        if isinstance(current, dict) and isinstance(value, Mapping):
            merge_fill_gaps(current, value)
    return target


class Config:
    """
    Dotted-key configuration store.

    Sources are loaded in order and later files override earlier ones.
    `add()` is for defaults (module config): it only fills gaps.
    """

    def __init__(self, sources: Iterable[str] = ()) -> None:
        self._data: Dict[str, Any] = {}
        self.sources = list(sources)
        for source in self.sources:
            merge_override(self._data, load_source(source))
        if self.sources:
            logger.info("Config loaded from %d source(s): %s", len(self.sources), ", ".join(self.sources))

    def get(self, path: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def has(self, path: str) -> bool:
        return self.get(path, _MISSING) is not _MISSING

    def add(self, fragment: Mapping[str, Any]) -> None:
        merge_fill_gaps(self._data, fragment)

    def set(self, path: str, value: Any) -> None:
        parts = path.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def all(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)
