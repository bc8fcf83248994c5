# Path: jsl/kernel/container.py
from __future__ import annotations
import inspect
import logging
import typing
from typing import Any, Callable, Dict, List, Optional, Tuple

from jsl.exceptions import UnresolvableDependencyError
from jsl.utils import describe, import_string

logger = logging.getLogger(__name__)


class Container:
    """
    Service registry / lightweight DI container used by the kernel.

    Abstracts are types (preferred) or strings. A binding maps an abstract to:
      * None        -> the abstract itself is built (it must be a concrete class)
      * a class     -> built with constructor autowiring
      * a string    -> resolved again (alias or import path)
      * a callable  -> factory; named parameters are bound first and a leading
                       bare parameter receives the container

    Singleton bindings keep the first built instance. Unbound classes and
    import paths are built on demand (never cached).
    """

    def __init__(self) -> None:
        # abstract -> (concrete, singleton)
        self._bindings: Dict[Any, Tuple[Any, bool]] = {}
        self._instances: Dict[Any, Any] = {}
        self._building: List[Any] = []

    # -----------------------
    # REGISTER
    # -----------------------
    def bind(self, abstract: Any, concrete: Any = None, singleton: bool = True) -> None:
        self._instances.pop(abstract, None)
        self._bindings[abstract] = (concrete, singleton)
        logger.debug("Bound %s (singleton=%s)", describe(abstract), singleton)

    def singleton(self, abstract: Any, concrete: Any = None) -> None:
        self.bind(abstract, concrete, singleton=True)

    def instance(self, abstract: Any, obj: Any) -> Any:
        """Register an already built object."""
        self._bindings.pop(abstract, None)
        self._instances[abstract] = obj
        logger.debug("Registered instance for %s", describe(abstract))
        return obj

    # -----------------------
    # HAS
    # -----------------------
    def bound(self, abstract: Any) -> bool:
        return abstract in self._bindings or abstract in self._instances

    def resolved(self, abstract: Any) -> bool:
        return abstract in self._instances

    # -----------------------
    # MAKE
    # -----------------------
    def make(self, abstract: Any, parameters: Optional[Dict[str, Any]] = None) -> Any:
        """
        Resolve `abstract`. `parameters` override constructor/factory arguments by
        name; a call with parameters never reuses or stores a singleton.
        """
        parameters = dict(parameters or {})

        if abstract in self._instances and (not parameters or abstract not in self._bindings):
            return self._instances[abstract]

        if abstract in self._bindings:
            concrete, singleton = self._bindings[abstract]
            if concrete is None or concrete is abstract:
                obj = self._build(abstract, parameters)
            elif isinstance(concrete, str) or self.bound(concrete):
                # alias of another binding or an import path
                obj = self.make(concrete, parameters)
            else:
                obj = self._build(concrete, parameters)
            if singleton and not parameters:
                self._instances[abstract] = obj
            return obj

        if isinstance(abstract, str):
            try:
                target = import_string(abstract)
            except ImportError as e:
                raise UnresolvableDependencyError(
                    f"Nothing is bound to '{abstract}' and it is not an importable path"
                ) from e
            return self.make(target, parameters)

        return self._build(abstract, parameters)

    # -----------------------
    # BUILD
    # -----------------------
    def _build(self, concrete: Any, parameters: Dict[str, Any]) -> Any:
        if inspect.isclass(concrete):
            if inspect.isabstract(concrete) or getattr(concrete, "_is_protocol", False):
                raise UnresolvableDependencyError(
                    f"{describe(concrete)} is abstract and nothing is bound to it"
                )
            if concrete in self._building:
                chain = " -> ".join(describe(c) for c in self._building + [concrete])
                raise UnresolvableDependencyError(f"Circular dependency: {chain}")
            self._building.append(concrete)
            try:
                try:
                    sig = inspect.signature(concrete)
                except (TypeError, ValueError):
                    kwargs = dict(parameters)
                else:
                    kwargs = self._resolve_arguments(concrete, sig, self._type_hints(concrete.__init__), parameters)
                obj = concrete(**kwargs)
            finally:
                self._building.pop()
            logger.debug("Built %s", describe(concrete))
            return obj

        if callable(concrete):
            return self._invoke_factory(concrete, parameters)

        raise UnresolvableDependencyError(f"Cannot build {describe(concrete)}")

    def _invoke_factory(self, factory: Callable[..., Any], parameters: Dict[str, Any]) -> Any:
        """
        Named parameters are bound first. A leading parameter left without a
        value, annotation or default receives the container, so factory()
        and factory(container) both work.
        """
        try:
            sig = inspect.signature(factory)
        except (TypeError, ValueError):
            return factory(**parameters)

        hints = self._type_hints(factory)
        args: List[Any] = []
        skip: Tuple[str, ...] = ()
        positional = [p for p in sig.parameters.values() if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
        if positional:
            first = positional[0]
            if first.name not in parameters and first.name not in hints and first.default is first.empty:
                args.append(self)
                skip = (first.name,)

        kwargs = self._resolve_arguments(factory, sig, hints, parameters, skip)
        return factory(*args, **kwargs)

    def _type_hints(self, obj: Any) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(obj)
        except Exception:
            logger.debug("Could not evaluate annotations of %s", describe(obj), exc_info=True)
            return {}

    def _resolve_arguments(
        self,
        owner: Any,
        sig: inspect.Signature,
        hints: Dict[str, Any],
        parameters: Dict[str, Any],
        skip: Tuple[str, ...] = (),
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        accepts_any = False
        for name, param in sig.parameters.items():
            if name in skip or param.kind == param.VAR_POSITIONAL:
                continue
            if param.kind == param.VAR_KEYWORD:
                accepts_any = True
                continue
            if name in parameters:
                kwargs[name] = parameters[name]
                continue

            annotation = hints.get(name)
            has_default = param.default is not param.empty
            if annotation is Container:
                kwargs[name] = self
                continue
            if inspect.isclass(annotation) and annotation.__module__ != "builtins":
                try:
                    kwargs[name] = self.make(annotation)
                    continue
                except UnresolvableDependencyError:
                    if not has_default:
                        raise
            if has_default:
                continue
            raise UnresolvableDependencyError(
                f"Unresolvable parameter '{name}' while building {describe(owner)}"
            )

        unknown = sorted(name for name in parameters if name not in kwargs)
        if unknown:
            if not accepts_any:
                raise UnresolvableDependencyError(
                    f"{describe(owner)} takes no parameter(s) named {', '.join(unknown)}"
                )
            kwargs.update((name, parameters[name]) for name in unknown)
        return kwargs

    # -----------------------
    # LIST / DUMP
    # -----------------------
    def list_services(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for abstract in list(self._bindings) + [a for a in self._instances if a not in self._bindings]:
            singleton = self._bindings.get(abstract, (None, True))[1]
            out[describe(abstract)] = {"materialized": abstract in self._instances, "singleton": singleton}
        return out
