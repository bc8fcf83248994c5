# Path: jsl/config/settings.py
from __future__ import annotations
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class KernelSettings(BaseModel):
    """Validated view of the `kernel` config section."""

    model_config = ConfigDict(extra="ignore")

    debug: bool = False
    timezone: str = "UTC"
    log_level: str = Field(default="INFO")

    @classmethod
    def from_section(cls, section: Any) -> "KernelSettings":
        if section is None:
            section = {}
        return cls.model_validate(section)

    def as_dict(self) -> Dict[str, Any]:
        return {"debug": self.debug, "timezone": self.timezone, "log_level": self.log_level}
