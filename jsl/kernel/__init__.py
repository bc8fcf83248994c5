# Path: jsl/kernel/__init__.py
"""
JSL Kernel Package
------------------
The kernel is the composition root of the framework. It coordinates:

- Configuration (loaded sources + module defaults)
- Dependency container
- Request facade and router
- Module registry and lifecycle (boot, deferred)
- Diagnostics
"""

from .kernel import Kernel
from .container import Container
from .diagnostics import KernelDiagnostics

__all__ = [
    "Kernel",
    "Container",
    "KernelDiagnostics",
]
