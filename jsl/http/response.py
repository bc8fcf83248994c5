# Path: jsl/http/response.py
from __future__ import annotations
import logging
import sys
from http import HTTPStatus
from typing import Any, BinaryIO, Optional

from starlette.responses import HTMLResponse, Response

logger = logging.getLogger(__name__)


def to_response(result: Any) -> Response:
    """
    Normalize a handler result. Responses pass through; anything else is used
    as the literal body of a text/html 200 response (None -> empty body).
    """
    if isinstance(result, Response):
        return result
    if result is None:
        return HTMLResponse(b"")
    if isinstance(result, (bytes, bytearray)):
        return HTMLResponse(bytes(result))
    return HTMLResponse(str(result))


def send_response(response: Response, stream: Optional[BinaryIO] = None) -> None:
    """
    Write status line, headers and body using CGI framing:

        Status: 200 OK
        content-type: text/html; charset=utf-8

        <body>
    """
    body = getattr(response, "body", None)
    if body is None:
        raise TypeError(f"{type(response).__name__} has no buffered body; streaming responses are not supported")
    if stream is None:
        stream = sys.stdout.buffer

    try:
        reason = HTTPStatus(response.status_code).phrase
    except ValueError:
        reason = ""
    lines = [f"Status: {response.status_code} {reason}".rstrip()]
    for name, value in response.raw_headers:
        lines.append(f"{name.decode('latin-1')}: {value.decode('latin-1')}")

    stream.write(("\r\n".join(lines) + "\r\n\r\n").encode("latin-1"))
    stream.write(body)
    stream.flush()
    logger.debug("Response sent: status=%s bytes=%d", response.status_code, len(body))
