# Path: jsl/utils.py
from __future__ import annotations
import importlib
from typing import Any


def import_string(path: str) -> Any:
    """
    Import an object from "pkg.module:attr" or "pkg.module.attr".
    Nested attributes ("pkg.module:Outer.Inner") are followed.
    """
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ImportError(f"'{path}' is not an import path")

    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ImportError(f"'{module_name}' has no attribute '{attr}'") from e
    return obj


def describe(abstract: Any) -> str:
    """Readable name for a container key or class."""
    if isinstance(abstract, str):
        return abstract
    module = getattr(abstract, "__module__", None)
    qualname = getattr(abstract, "__qualname__", None) or repr(abstract)
    return f"{module}.{qualname}" if module and module != "builtins" else qualname
