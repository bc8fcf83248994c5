# Path: jsl/helpers.py
"""
Shortcuts to common calls on the process-wide kernel.

These read Kernel.instance(); code that already holds a kernel reference
(modules, controllers) should use it directly instead.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Union

from starlette.responses import RedirectResponse

from jsl.http.request import Request
from jsl.kernel.kernel import Kernel

Keys = Union[str, Iterable[Any], Mapping[str, Any]]


def get_kernel() -> Kernel:
    return Kernel.instance()


def route(name: str, **arguments: Any) -> str:
    return get_kernel().router.url_for(name, **arguments)


def request() -> Request:
    return get_kernel().request


def subset(source: Mapping[str, Any], keys: Keys, missing_as_null: bool = False) -> Dict[str, Any]:
    """
    Pick keys from a mapping.

    `keys` is an iterable of names, or a mapping of name -> default. Names
    without a default are skipped when missing unless `missing_as_null`.
    """
    target: Dict[str, Any] = {}
    if isinstance(keys, Mapping):
        for key, default in keys.items():
            target[key] = source[key] if key in source else default
        return target

    for key in keys:
        if key in source:
            target[key] = source[key]
        elif missing_as_null:
            target[key] = None
    return target


def from_request(key: Keys, fallback: Any = None) -> Any:
    """Value(s) from the parsed request body. `fallback` only applies to a single key."""
    data = request().payload()
    if isinstance(key, str):
        return data.get(key, fallback)
    return subset(data, key)


def from_query_string(key: Keys, fallback: Any = None) -> Any:
    params = request().query_params
    if isinstance(key, str):
        return params.get(key, fallback)
    return subset(params, key)


def redirect(location: str, status_code: int = 302) -> RedirectResponse:
    return RedirectResponse(location, status_code=status_code)


def class_name(class_or_object: Any) -> str:
    """Fully qualified class name of a class or an instance."""
    cls = class_or_object if isinstance(class_or_object, type) else type(class_or_object)
    return f"{cls.__module__}.{cls.__qualname__}"
