"""
JSL: bootstrap kernel for small web applications.

Wires configuration, a dependency container, a request facade, a router and
pluggable modules together, then dispatches the request.
"""

from .exceptions import (
    ConfigError,
    DuplicateModuleError,
    InvalidModuleError,
    InvalidModuleIdError,
    KernelError,
    KernelNotInitializedError,
    ModuleError,
    RouteNotFoundError,
    UnresolvableDependencyError,
)
from .kernel import Container, Kernel
from .modules import AbstractModule, Module

__version__ = "0.1.0"

__all__ = [
    "AbstractModule",
    "ConfigError",
    "Container",
    "DuplicateModuleError",
    "InvalidModuleError",
    "InvalidModuleIdError",
    "Kernel",
    "KernelError",
    "KernelNotInitializedError",
    "Module",
    "ModuleError",
    "RouteNotFoundError",
    "UnresolvableDependencyError",
]
