"""
HTTP collaborators of the kernel: request facade, router adapter,
response sending, session and views capabilities.
"""

from .request import Request
from .response import send_response, to_response
from .router import Router
from .session import Session, SessionInterface
from .views import ViewsInterface

__all__ = [
    "Request",
    "Router",
    "Session",
    "SessionInterface",
    "ViewsInterface",
    "send_response",
    "to_response",
]
