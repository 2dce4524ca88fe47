"""
Authorization header providers used by :class:`PaymentIntentClient`.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Protocol

__all__ = [
    "AuthProvider",
    "StaticAuthProvider",
    "CallableAuthProvider",
]


class AuthProvider(Protocol):
    """
    Supplies request headers for the authenticated payment endpoints.

    Implementations never raise and always include ``Authorization``.
    """

    def headers(self, include_csrf: bool = False) -> Dict[str, str]:
        ...


def _build_headers(
    token: Optional[str],
    csrf_token: Optional[str],
    include_csrf: bool,
) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {token or ''}".rstrip()}
    if include_csrf and csrf_token:
        headers["x-csrf-token"] = csrf_token
    return headers


class StaticAuthProvider:
    """
    Auth provider backed by fixed bearer and CSRF tokens.
    """

    def __init__(self, token: Optional[str] = None, csrf_token: Optional[str] = None) -> None:
        self.token = token
        self.csrf_token = csrf_token

    def headers(self, include_csrf: bool = False) -> Dict[str, str]:
        return _build_headers(self.token, self.csrf_token, include_csrf)


class CallableAuthProvider:
    """
    Auth provider that reads the current tokens from callables on every request.

    Useful when the session store refreshes tokens behind the client's back.
    """

    def __init__(
        self,
        token: Callable[[], Optional[str]],
        csrf_token: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        self._token = token
        self._csrf_token = csrf_token

    def headers(self, include_csrf: bool = False) -> Dict[str, str]:
        csrf = self._csrf_token() if self._csrf_token is not None else None
        return _build_headers(self._token(), csrf, include_csrf)
