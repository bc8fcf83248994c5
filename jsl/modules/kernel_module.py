# Path: jsl/modules/kernel_module.py
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict

from jsl.http.request import Request
from jsl.http.session import Session, SessionInterface

from .base import AbstractModule

if TYPE_CHECKING:
    from jsl.kernel.container import Container
    from jsl.kernel.kernel import Kernel


def _make_session(container: "Container") -> Session:
    session = Session(container.make(Request))
    if not session.is_started():
        session.start()
    return session


class KernelModule(AbstractModule):
    """Built-in module, always registered first."""

    def name(self) -> str:
        return "Kernel"

    def id(self) -> str:
        return "kernel"

    def boot(self, kernel: "Kernel") -> None:
        # controllers and other handler classes are built by the container
        kernel.router.set_class_resolver(kernel.resolve)
        kernel.bind(SessionInterface, _make_session)
        kernel.bind(Session, SessionInterface)

    def config(self) -> Dict[str, Any]:
        return {
            "debug": False,
            "timezone": "UTC",
        }
