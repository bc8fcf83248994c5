# Path: jsl/http/router.py
from __future__ import annotations
import inspect
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

from starlette.routing import Match, NoMatchFound, Route
from starlette.responses import PlainTextResponse

from jsl.exceptions import RouteNotFoundError
from jsl.utils import import_string

from .request import Request

logger = logging.getLogger(__name__)

# A handler is a callable, a (class_or_path, "method") pair, or a string:
#   "pkg.mod:function", "pkg.mod:Class" (invokable) or "pkg.mod:Class@method"
Handler = Union[Callable[..., Any], str, Tuple[Any, str]]


class _Endpoint:
    """Holds the handler so Starlette treats the route as a plain matcher."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler


def _handler_name(handler: Handler) -> str:
    if isinstance(handler, str):
        return handler.rsplit(":", 1)[-1].replace("@", ".")
    if isinstance(handler, (tuple, list)):
        target, method = handler
        target_name = target.rsplit(":", 1)[-1] if isinstance(target, str) else getattr(target, "__name__", str(target))
        return f"{target_name}.{method}"
    return getattr(handler, "__name__", type(handler).__name__)


class Router:
    """
    Route table and dispatcher. URL matching and reverse lookup are delegated
    to Starlette routes; this class resolves handlers and calls them.
    """

    def __init__(self) -> None:
        self._routes: List[Route] = []
        self._class_resolver: Callable[[Any], Any] = lambda cls: cls()
        self._fixed_arguments: Tuple[Any, ...] = ()

    # -----------------------
    # CONFIGURATION
    # -----------------------
    def set_class_resolver(self, resolver: Callable[[Any], Any]) -> None:
        self._class_resolver = resolver

    def set_fixed_arguments(self, *args: Any) -> None:
        """Arguments passed first to every handler call."""
        self._fixed_arguments = tuple(args)

    # -----------------------
    # ROUTE DECLARATION
    # -----------------------
    def add(self, methods: Union[str, Sequence[str], None], path: str, handler: Handler, name: Optional[str] = None) -> Route:
        if isinstance(methods, str):
            methods = [methods]
        route = Route(
            path,
            endpoint=_Endpoint(handler),
            methods=[m.upper() for m in methods] if methods else None,
            name=name or _handler_name(handler),
        )
        self._routes.append(route)
        logger.debug("Route added: %s %s -> %s", ",".join(sorted(route.methods or ["*"])), path, route.name)
        return route

    def get(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        return self.add("GET", path, handler, name)

    def post(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        return self.add("POST", path, handler, name)

    def put(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        return self.add("PUT", path, handler, name)

    def patch(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        return self.add("PATCH", path, handler, name)

    def delete(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        return self.add("DELETE", path, handler, name)

    def any(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        return self.add(None, path, handler, name)

    def routes(self) -> List[Route]:
        return list(self._routes)

    # -----------------------
    # REVERSE LOOKUP
    # -----------------------
    def url_for(self, name: str, **params: Any) -> str:
        for route in self._routes:
            try:
                return str(route.url_path_for(name, **params))
            except NoMatchFound:
                continue
        raise RouteNotFoundError(f"No route named '{name}' accepts params {sorted(params)}")

    # -----------------------
    # DISPATCH
    # -----------------------
    def run(self, request: Request) -> Any:
        """Call the handler of the first fully matching route and return its result."""
        allowed: Set[str] = set()
        for route in self._routes:
            match, child_scope = route.matches(request.scope)
            if match == Match.FULL:
                path_params: Dict[str, Any] = child_scope.get("path_params", {})
                logger.info("Dispatching %s %s to %s", request.method, request.path, route.name,
                            extra={"route": route.name, "method": request.method, "path": request.path})
                handler = self._resolve_handler(route.endpoint.handler)
                return handler(*self._fixed_arguments, **path_params)
            if match == Match.PARTIAL:
                allowed.update(route.methods or ())

        if allowed:
            logger.info("Method %s not allowed for %s", request.method, request.path)
            return PlainTextResponse("Method Not Allowed", status_code=405, headers={"Allow": ", ".join(sorted(allowed))})
        logger.info("No route for %s %s", request.method, request.path)
        return PlainTextResponse("Not Found", status_code=404)

    def _resolve_handler(self, handler: Handler) -> Callable[..., Any]:
        if isinstance(handler, (tuple, list)):
            target, method = handler
            return getattr(self._instantiate(target), method)

        if isinstance(handler, str):
            path, _, method = handler.partition("@")
            target = import_string(path)
            if method:
                return getattr(self._instantiate(target), method)
            handler = target

        if inspect.isclass(handler):
            # invokable controller
            return self._class_resolver(handler)
        return handler

    def _instantiate(self, target: Any) -> Any:
        if isinstance(target, str):
            target = import_string(target)
        return self._class_resolver(target) if inspect.isclass(target) else target

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
