# Path: jsl/config/loader.py
from __future__ import annotations
import json
import logging
import os
from typing import Any, Dict

import yaml

from jsl.exceptions import ConfigError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


def load_source(path: str) -> Dict[str, Any]:
    """
    Read one configuration file into a nested dict.
    JSON and YAML are supported; an empty YAML file yields {}.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ConfigError(f"Unsupported config format '{ext}' for {path}")
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as fh:
            if ext == ".json":
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping, got {type(data).__name__}")

    logger.debug("Loaded config source %s (%d top-level keys)", path, len(data))
    return data
