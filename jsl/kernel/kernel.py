# Path: jsl/kernel/kernel.py
from __future__ import annotations
import logging
import os
import time
import warnings
from typing import Any, BinaryIO, Dict, Iterable, Mapping, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from starlette.responses import Response

from jsl.config.settings import KernelSettings
from jsl.config.store import Config
from jsl.exceptions import ConfigError, KernelNotInitializedError
from jsl.http.request import Request
from jsl.http.response import send_response, to_response
from jsl.http.router import Router
from jsl.http.session import SessionInterface
from jsl.modules.base import Module
from jsl.modules.kernel_module import KernelModule
from jsl.modules.registry import ModuleRegistry

from .container import Container
from .diagnostics import KernelDiagnostics

logger = logging.getLogger(__name__)

ModuleRef = Union[Module, type, str]


class Kernel:
    """
    Composition root. Construction order:
      container -> module registry -> config -> request -> router
      -> environment setup -> KernelModule -> configured modules

    The first kernel constructed in a process is returned by Kernel.instance().
    """

    _instance: Optional["Kernel"] = None

    def __init__(
        self,
        configs: Iterable[str] = (),
        *,
        environ: Optional[Mapping[str, Any]] = None,
        stdin: Optional[BinaryIO] = None,
    ) -> None:
        if Kernel._instance is None:
            Kernel._instance = self

        self._container = Container()
        self._container.instance(Kernel, self)
        if type(self) is not Kernel:
            self._container.instance(type(self), self)

        self._modules = ModuleRegistry()
        self._container.instance(ModuleRegistry, self._modules)

        self.config = Config(configs)
        self._container.instance(Config, self.config)
        self._container.bind("config", Config)

        self.request = Request.from_environ(environ, stdin)
        self._container.instance(Request, self.request)
        self._container.bind("request", Request)

        self.router = Router()
        self._container.instance(Router, self.router)
        self._container.bind("router", Router)

        self.settings = self.setup()
        self.diagnostics = KernelDiagnostics(self)

        self.add_module(KernelModule())
        self.add_modules(self._configured_modules())
        logger.info("[Kernel] Ready with %d module(s)", len(self._modules))

    # -----------------------
    # GLOBAL ACCESS
    # -----------------------
    @classmethod
    def instance(cls) -> "Kernel":
        if Kernel._instance is None:
            raise KernelNotInitializedError(
                "An instance of the Kernel must be instantiated before you can retrieve it"
            )
        return Kernel._instance

    # -----------------------
    # SETUP
    # -----------------------
    def setup(self) -> KernelSettings:
        """
        Apply the `kernel` config section to the process. Never raises: invalid
        values are logged and replaced by defaults (debug off, UTC).
        """
        try:
            settings = KernelSettings.from_section(self.config.get("kernel"))
        except ValidationError as e:
            logger.warning("Invalid kernel config, falling back to defaults: %s", e)
            settings = KernelSettings()

        package_logger = logging.getLogger("jsl")
        if settings.debug:
            package_logger.setLevel(logging.DEBUG)
            warnings.simplefilter("default")
        else:
            try:
                package_logger.setLevel(settings.log_level.upper())
            except ValueError:
                logger.warning("Unknown log level '%s', using INFO", settings.log_level)
                package_logger.setLevel(logging.INFO)

        try:
            ZoneInfo(settings.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone '%s', using UTC", settings.timezone)
            settings = settings.model_copy(update={"timezone": "UTC"})
        os.environ["TZ"] = settings.timezone
        if hasattr(time, "tzset"):
            time.tzset()

        logger.debug("Kernel settings applied: %s", settings.as_dict())
        return settings

    @property
    def debug(self) -> bool:
        return self.settings.debug

    def _configured_modules(self) -> list:
        modules = self.config.get("modules") or []
        if not isinstance(modules, (list, tuple)):
            raise ConfigError(f"'modules' must be a list, got {type(modules).__name__}")
        return list(modules)

    # -----------------------
    # MODULES
    # -----------------------
    def add_module(self, module: ModuleRef) -> "Kernel":
        module = self._modules.add(module, self)
        module_id = module.id()

        if module_id is not None:
            defaults = module.config()
            if defaults:
                # defaults never replace values the user already configured
                self.config.add({module_id: defaults})
            module.routes(self.router)

        return self

    def add_modules(self, modules: Iterable[ModuleRef]) -> "Kernel":
        for module in modules:
            self.add_module(module)
        return self

    def has_module(self, module_id: str) -> bool:
        return self._modules.has(module_id)

    def get_module(self, module_id: str) -> Optional[Module]:
        return self._modules.get(module_id)

    @property
    def modules(self) -> ModuleRegistry:
        return self._modules

    # -----------------------
    # CONTAINER
    # -----------------------
    def bind(self, abstract: Any, concrete: Any = None, singleton: bool = True) -> "Kernel":
        self._container.bind(abstract, concrete, singleton)
        return self

    def resolve(self, abstract: Any, parameters: Optional[Dict[str, Any]] = None) -> Any:
        return self._container.make(abstract, parameters)

    @property
    def container(self) -> Container:
        return self._container

    def session(self) -> SessionInterface:
        return self._container.make(SessionInterface)

    # -----------------------
    # REQUEST / RESPONSE
    # -----------------------
    def process(self, stream: Optional[BinaryIO] = None) -> Response:
        """Run deferred hooks, dispatch the request and send the response."""
        self._modules.run_deferred(self)
        result = self.router.run(self.request)
        response = to_response(result)
        send_response(response, stream)
        return response

    def health(self) -> Dict[str, Any]:
        return self.diagnostics.system_health()
