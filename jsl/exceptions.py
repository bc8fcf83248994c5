# Path: jsl/exceptions.py
from __future__ import annotations


class KernelError(Exception):
    """Base class for every error raised by the kernel."""
    pass


class KernelNotInitializedError(KernelError):
    """Raised when the process-wide kernel is requested before one exists."""
    pass


class UnresolvableDependencyError(KernelError):
    """The container cannot build or find the requested abstract."""
    pass


class ConfigError(KernelError):
    """A configuration source is missing, unreadable or malformed."""
    pass


class RouteNotFoundError(KernelError):
    """Reverse lookup of an unknown route name."""
    pass


class ModuleError(KernelError):
    pass


class InvalidModuleError(ModuleError):
    """The subject does not implement the module capability set."""
    pass


class InvalidModuleIdError(ModuleError):
    pass


class DuplicateModuleError(ModuleError):
    pass
