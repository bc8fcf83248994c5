# Path: jsl/controllers/base.py
from __future__ import annotations
from typing import Any, Dict, Optional

from starlette.responses import RedirectResponse

from jsl.http.request import Request
from jsl.http.views import ViewsInterface
from jsl.kernel.kernel import Kernel


class BaseController:
    """
    Optional base for route handler classes. The router builds controllers
    through the container, so the kernel is injected by the constructor.
    """

    def __init__(self, kernel: Kernel) -> None:
        self.kernel = kernel

    @property
    def request(self) -> Request:
        return self.kernel.request

    def render(self, template: str, data: Optional[Dict[str, Any]] = None) -> str:
        views = self.kernel.resolve(ViewsInterface)
        return views.render(template, data or {})

    def route(self, name: str, **arguments: Any) -> str:
        """Path of a named route."""
        return self.kernel.router.url_for(name, **arguments)

    def redirect(self, location: str, status_code: int = 302) -> RedirectResponse:
        return RedirectResponse(location, status_code=status_code)
