# Path: jsl/kernel/diagnostics.py
from __future__ import annotations
import logging
import os
import time
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from .kernel import Kernel

logger = logging.getLogger(__name__)


class KernelDiagnostics:
    """
    Read-only health summary of a kernel: uptime, modules, container
    bindings and named routes. Safe to call at any point after construction.
    """

    def __init__(self, kernel: "Kernel") -> None:
        self.kernel = kernel
        self.boot_time = time.time()

    def registered_modules(self) -> List[str]:
        return self.kernel.modules.ids()

    def registered_services(self) -> List[str]:
        return list(self.kernel.container.list_services().keys())

    def route_names(self) -> List[str]:
        return [route.name for route in self.kernel.router.routes()]

    def system_health(self) -> Dict[str, Any]:
        return {
            "pid": os.getpid(),
            "uptime_seconds": time.time() - self.boot_time,
            "debug": self.kernel.debug,
            "timezone": self.kernel.settings.timezone,
            "deferred_ran": self.kernel.modules.deferred_ran,
            "registered_modules": self.registered_modules(),
            "registered_services": self.registered_services(),
            "routes": self.route_names(),
        }
