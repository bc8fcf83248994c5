# Path: jsl/modules/base.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from jsl.http.router import Router
    from jsl.kernel.kernel import Kernel


class Module(ABC):
    """
    Module contract.

    Implementations MUST provide:
      - def name(self) -> str             descriptive only
      - def id(self) -> Optional[str]     [A-Za-z][A-Za-z0-9_-]+ or None

    A module without an id contributes neither config nor routes; only
    boot() and deferred() are called for it.

    Lifecycle, driven by the kernel:
      boot(kernel)      once, when the module is registered
      config()          once, right after boot (id modules only)
      routes(router)    once, after the config merge (id modules only)
      deferred(kernel)  once per process, before the first dispatch
    """

    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def id(self) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def boot(self, kernel: "Kernel") -> None:
        raise NotImplementedError

    @abstractmethod
    def routes(self, router: "Router") -> None:
        raise NotImplementedError

    @abstractmethod
    def config(self) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def deferred(self, kernel: "Kernel") -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id()!r}>"


class AbstractModule(Module):
    """Convenience base: every hook except name() and id() is a no-op."""

    def boot(self, kernel: "Kernel") -> None:
        pass

    def routes(self, router: "Router") -> None:
        pass

    def config(self) -> Dict[str, Any]:
        return {}

    def deferred(self, kernel: "Kernel") -> None:
        pass
