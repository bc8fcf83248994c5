from .base import AbstractModule, Module
from .kernel_module import KernelModule
from .registry import MODULE_ID_PATTERN, ModuleRegistry, is_valid_module_id

__all__ = [
    "AbstractModule",
    "KernelModule",
    "Module",
    "ModuleRegistry",
    "MODULE_ID_PATTERN",
    "is_valid_module_id",
]
