"""
Error types raised inside the client and the helpers that turn them into messages.

Public client operations never let these escape; they are converted into
failure results at the boundary.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

__all__ = [
    "ClientError",
    "StorageError",
    "TransportError",
    "ValidationError",
    "extract_error_message",
]


class ClientError(Exception):
    """Base class for errors reported through failure results."""

    error_type = "client"


class ValidationError(ClientError):
    """The caller supplied input that cannot be sent to the backend."""

    error_type = "validation"


class StorageError(ClientError):
    """The idempotency token could not be read or written."""

    error_type = "storage"


class TransportError(ClientError):
    """The request failed on the network or the backend rejected it."""

    error_type = "transport"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_response(cls, response: requests.Response) -> "TransportError":
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text
        return cls(
            f"Payment API responded with {response.status_code}",
            status_code=response.status_code,
            body=body,
        )


def _server_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for field in ("message", "error"):
        value = body.get(field)
        if isinstance(value, str) and value:
            return value
    return None


def extract_error_message(exc: BaseException, fallback: str) -> str:
    """
    Pick the most useful message for ``exc``.

    Preference order is the server's ``message`` field, then its ``error``
    field, then the exception text, then ``fallback``.
    """
    if isinstance(exc, TransportError):
        server = _server_message(exc.body)
        if server:
            return server
    return str(exc) or fallback
