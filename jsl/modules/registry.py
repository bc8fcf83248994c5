# Path: jsl/modules/registry.py
from __future__ import annotations
import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Set, Union

from jsl.exceptions import DuplicateModuleError, InvalidModuleError, InvalidModuleIdError
from jsl.utils import describe

from .base import Module

if TYPE_CHECKING:
    from jsl.kernel.kernel import Kernel

logger = logging.getLogger(__name__)

MODULE_ID_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_-]+")


def is_valid_module_id(module_id: Any) -> bool:
    return isinstance(module_id, str) and MODULE_ID_PATTERN.fullmatch(module_id) is not None


class ModuleRegistry:
    """
    Ordered registry of modules keyed by id.
    Registration order is also boot order and deferred order.
    Modules without an id are keyed by their class path.
    """

    def __init__(self) -> None:
        self._modules: Dict[str, Module] = {}
        self._deferred_done: Set[str] = set()
        self.deferred_ran = False

    def add(self, module: Union[Module, type, str], kernel: "Kernel") -> Module:
        if not isinstance(module, Module):
            if isinstance(module, (str, type)):
                module = kernel.resolve(module)
            if not isinstance(module, Module):
                raise InvalidModuleError(
                    f"Modules must implement {describe(Module)}, got {describe(type(module))}"
                )

        module_id = module.id()
        if module_id is not None and not is_valid_module_id(module_id):
            raise InvalidModuleIdError(f"Invalid module id '{module_id}' for module '{describe(type(module))}'")

        key = module_id if module_id is not None else describe(type(module))
        if key in self._modules:
            raise DuplicateModuleError(f"A module with the id '{key}' has already been added")

        self._modules[key] = module
        logger.info("Module registered: %s (%s)", key, module.name(), extra={"module_id": key})
        module.boot(kernel)
        return module

    def has(self, module_id: str) -> bool:
        return module_id in self._modules

    def get(self, module_id: str) -> Optional[Module]:
        return self._modules.get(module_id)

    def ids(self) -> List[str]:
        return list(self._modules.keys())

    def run_deferred(self, kernel: "Kernel") -> None:
        """
        Run every module's deferred hook, in registration order, once per process.
        If a hook raises, the hooks that already ran are not repeated on the
        next call; the failed one and those after it are.
        """
        if self.deferred_ran:
            logger.debug("Deferred phase already ran; skipping")
            return
        for key, module in list(self._modules.items()):
            if key in self._deferred_done:
                continue
            logger.debug("Running deferred hook of %s", key, extra={"module_id": key})
            module.deferred(kernel)
            self._deferred_done.add(key)
        self.deferred_ran = True

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[Module]:
        return iter(list(self._modules.values()))

    def __len__(self) -> int:
        return len(self._modules)
