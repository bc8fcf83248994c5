# Path: jsl/http/views.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ViewsInterface(ABC):
    """
    Templating capability. Nothing is bound by default; an application module
    binds its engine adapter under ViewsInterface in boot().
    """

    @abstractmethod
    def render(self, template: str, data: Optional[Dict[str, Any]] = None) -> str:
        raise NotImplementedError
