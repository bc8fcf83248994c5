from .store import Config
from .loader import load_source
from .settings import KernelSettings

__all__ = ["Config", "KernelSettings", "load_source"]
