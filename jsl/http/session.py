# Path: jsl/http/session.py
from __future__ import annotations
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .request import Request

logger = logging.getLogger(__name__)


class SessionInterface(ABC):
    """
    Session capability the kernel binds under SessionInterface.
    Storage engines are pluggable; only the start/lookup contract is fixed here.
    """

    @abstractmethod
    def is_started(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def start(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def id(self) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError


class Session(SessionInterface):
    """
    In-process session. The id is taken from the session cookie when the
    request carries one, otherwise a new one is generated on start().
    Data lives for the duration of the process only.
    """

    COOKIE_NAME = "JSLSESSID"

    def __init__(self, request: Optional[Request] = None) -> None:
        self._request = request
        self._id: Optional[str] = None
        self._started = False
        self._data: Dict[str, Any] = {}

    def is_started(self) -> bool:
        return self._started

    def start(self) -> bool:
        if self._started:
            return True
        cookie_id = self._request.cookies.get(self.COOKIE_NAME) if self._request is not None else None
        self._id = cookie_id or uuid.uuid4().hex
        self._started = True
        logger.debug("Session started id=%s (from_cookie=%s)", self._id, bool(cookie_id))
        return True

    def id(self) -> Optional[str]:
        return self._id

    def _require_started(self) -> None:
        if not self._started:
            raise RuntimeError("Session has not been started")

    def get(self, key: str, default: Any = None) -> Any:
        self._require_started()
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._require_started()
        self._data[key] = value

    def has(self, key: str) -> bool:
        self._require_started()
        return key in self._data

    def remove(self, key: str) -> Any:
        self._require_started()
        return self._data.pop(key, None)

    def all(self) -> Dict[str, Any]:
        self._require_started()
        return dict(self._data)

    def clear(self) -> None:
        self._require_started()
        self._data.clear()
