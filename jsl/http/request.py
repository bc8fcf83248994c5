# Path: jsl/http/request.py
from __future__ import annotations
import json
import logging
import os
import sys
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, quote_from_bytes, unquote, urlsplit

from starlette.datastructures import URL, Headers, QueryParams
from starlette.requests import Request as StarletteRequest

logger = logging.getLogger(__name__)

_QUERY_SAFE = "!$%&'()*+,/:;=?@[]~"


class Request:
    """
    Read-only request facade over a Starlette request.

    The kernel builds one per process from the ambient CGI/WSGI environment.
    The body is read eagerly so every accessor stays synchronous.
    """

    # format -> mime types, preferred mime type first
    FORMATS: Dict[str, Tuple[str, ...]] = {
        "html": ("text/html", "application/xhtml+xml"),
        "txt": ("text/plain",),
        "js": ("application/javascript", "application/x-javascript", "text/javascript"),
        "css": ("text/css",),
        "json": ("application/json", "application/x-json"),
        "jsonld": ("application/ld+json",),
        "xml": ("text/xml", "application/xml", "application/x-xml"),
        "rdf": ("application/rdf+xml",),
        "atom": ("application/atom+xml",),
        "rss": ("application/rss+xml",),
        "form": ("application/x-www-form-urlencoded", "multipart/form-data"),
    }

    def __init__(self, scope: Dict[str, Any], body: bytes = b"") -> None:
        self._request = StarletteRequest(scope)
        self._body = body

    # -----------------------
    # FACTORIES
    # -----------------------
    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, Any]] = None, stdin: Optional[BinaryIO] = None) -> "Request":
        """
        Build a request from CGI/WSGI variables (defaults to os.environ).
        The body is read from `wsgi.input`, then `stdin`, then the process stdin.
        """
        if environ is None:
            environ = os.environ

        method = str(environ.get("REQUEST_METHOD") or "GET").upper()
        query = _quote_query(environ_bytes(environ.get("QUERY_STRING") or ""))
        path = environ.get("PATH_INFO")
        if path is None:
            raw_uri = str(environ.get("REQUEST_URI") or "/")
            raw_path, _, raw_query = raw_uri.partition("?")
            path = unquote(raw_path, errors="surrogateescape")
            query = query or _quote_query(environ_bytes(raw_query))
        raw_path = environ_bytes(path or "/")
        path = raw_path.decode("utf-8", "replace")

        headers: List[Tuple[bytes, bytes]] = []
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                name = key[5:]
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
                name = key
            else:
                continue
            if value in (None, ""):
                continue
            headers.append((environ_bytes(name.replace("_", "-").lower()), environ_bytes(value)))

        https = str(environ.get("HTTPS", "off")).lower() in ("on", "1")
        scheme = str(environ.get("wsgi.url_scheme") or ("https" if https else "http"))
        port = _to_int(environ.get("SERVER_PORT"), 443 if scheme == "https" else 80)
        server = (str(environ.get("SERVER_NAME") or "localhost"), port)
        client = None
        if environ.get("REMOTE_ADDR"):
            client = (str(environ["REMOTE_ADDR"]), _to_int(environ.get("REMOTE_PORT"), 0))
        http_version = str(environ.get("SERVER_PROTOCOL") or "HTTP/1.1").partition("/")[2] or "1.1"

        body = b""
        length = _to_int(environ.get("CONTENT_LENGTH"), 0)
        if length > 0:
            stream = environ.get("wsgi.input") or stdin or sys.stdin.buffer
            body = stream.read(length)

        scope = _http_scope(method, path, query, headers, scheme=scheme, server=server, client=client,
                            http_version=http_version, raw_path=raw_path)
        logger.debug("Request built from environment: %s %s", method, path)
        return cls(scope, body)

    @classmethod
    def create(
        cls,
        uri: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: bytes | str = b"",
    ) -> "Request":
        """Build a request for a URI; handy for tests and sub-requests."""
        parts = urlsplit(uri)
        scheme = parts.scheme or "http"
        host = parts.hostname or "localhost"
        port = parts.port or (443 if scheme == "https" else 80)
        if isinstance(body, str):
            body = body.encode("utf-8")

        raw_headers = [(environ_bytes(k.lower()), environ_bytes(v)) for k, v in (headers or {}).items()]
        if not any(k == b"host" for k, _ in raw_headers):
            raw_headers.append((b"host", host.encode("latin-1") if port in (80, 443) else f"{host}:{port}".encode("latin-1")))
        if body and not any(k == b"content-length" for k, _ in raw_headers):
            raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

        query = _quote_query(parts.query.encode("utf-8"))
        scope = _http_scope(method.upper(), unquote(parts.path or "/"), query, raw_headers,
                            scheme=scheme, server=(host, port), client=None)
        return cls(scope, body)

    # -----------------------
    # METADATA
    # -----------------------
    @property
    def starlette(self) -> StarletteRequest:
        return self._request

    @property
    def scope(self) -> Dict[str, Any]:
        return self._request.scope

    @property
    def method(self) -> str:
        return self._request.method

    @property
    def path(self) -> str:
        return self._request.url.path

    @property
    def url(self) -> URL:
        return self._request.url

    @property
    def headers(self) -> Headers:
        return self._request.headers

    @property
    def query_params(self) -> QueryParams:
        return self._request.query_params

    @property
    def cookies(self) -> Dict[str, str]:
        return self._request.cookies

    @property
    def client_host(self) -> Optional[str]:
        client = self._request.client
        return client.host if client else None

    def is_method(self, method: str) -> bool:
        return self.method == method.upper()

    def is_xml_http_request(self) -> bool:
        return self.headers.get("x-requested-with") == "XMLHttpRequest"

    # -----------------------
    # BODY
    # -----------------------
    @property
    def body(self) -> bytes:
        return self._body

    @property
    def content_type(self) -> Optional[str]:
        value = self.headers.get("content-type")
        return value.split(";", 1)[0].strip().lower() if value else None

    @property
    def form(self) -> Dict[str, str]:
        """Url-encoded body fields. Multipart bodies are not parsed here."""
        if self.content_type != "application/x-www-form-urlencoded" or not self._body:
            return {}
        return dict(parse_qsl(self._body.decode("utf-8"), keep_blank_values=True))

    def json(self) -> Any:
        return json.loads(self._body.decode("utf-8")) if self._body else None

    def payload(self) -> Dict[str, Any]:
        """Decoded body: JSON object for JSON requests, form fields otherwise."""
        if self.get_format(self.content_type) in ("json", "jsonld"):
            data = self.json()
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ValueError("Request JSON body is not an object")
            return data
        return dict(self.form)

    # -----------------------
    # CONTENT NEGOTIATION
    # -----------------------
    def acceptable_content_types(self) -> List[str]:
        """Media types from the Accept header, most preferred first (q=0 dropped)."""
        header = self.headers.get("accept", "")
        ranked: List[Tuple[float, int, str]] = []
        for index, part in enumerate(header.split(",")):
            media, *params = [p.strip() for p in part.split(";")]
            if not media:
                continue
            quality = 1.0
            for param in params:
                key, _, value = param.partition("=")
                if key.strip().lower() == "q":
                    quality = _to_float(value, 0.0)
            if quality <= 0:
                continue
            ranked.append((-quality, index, media.lower()))
        return [media for _, _, media in sorted(ranked)]

    def preferred_format(self, default: Optional[str] = "html") -> Optional[str]:
        for mime in self.acceptable_content_types():
            fmt = self.get_format(mime)
            if fmt:
                return fmt
        return default

    def accepts_json(self) -> bool:
        """True when the client explicitly lists application/json."""
        return "application/json" in self.acceptable_content_types()

    @classmethod
    def get_format(cls, mime_type: Optional[str]) -> Optional[str]:
        if not mime_type:
            return None
        canonical = mime_type.split(";", 1)[0].strip().lower()
        for fmt, mimes in cls.FORMATS.items():
            if canonical in mimes:
                return fmt
        return None

    @classmethod
    def get_mime_type(cls, fmt: str) -> Optional[str]:
        mimes = cls.FORMATS.get(fmt)
        return mimes[0] if mimes else None

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"


def _http_scope(
    method: str,
    path: str,
    query: bytes,
    headers: List[Tuple[bytes, bytes]],
    *,
    scheme: str,
    server: Tuple[str, int],
    client: Optional[Tuple[str, int]],
    http_version: str = "1.1",
    raw_path: Optional[bytes] = None,
) -> Dict[str, Any]:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": http_version,
        "method": method,
        "scheme": scheme,
        "path": path,
        "raw_path": raw_path if raw_path is not None else path.encode("utf-8"),
        "root_path": "",
        "query_string": query,
        "headers": headers,
        "server": server,
        "client": client,
        "path_params": {},
    }


def environ_bytes(value: Any) -> bytes:
    """
    Original bytes of an environment value. Python decodes CGI variables
    with surrogateescape, so undecodable bytes survive the round trip.
    """
    return str(value).encode("utf-8", "surrogateescape")


def _quote_query(raw: bytes) -> bytes:
    # non-ASCII bytes are percent-encoded; query parsing decodes them as UTF-8
    return quote_from_bytes(raw, safe=_QUERY_SAFE).encode("ascii")


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
