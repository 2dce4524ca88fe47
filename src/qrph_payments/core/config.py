"""
Configuration objects and helpers for the QRPH payment client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from .environment import ENV_PREFIX, build_environment

__all__ = [
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "load_client_config",
]

_PARAMETER_TO_ENV_KEY = {
    "api_base_url": "QRPH_API_BASE_URL",
    "auth_token": "QRPH_AUTH_TOKEN",
    "csrf_token": "QRPH_CSRF_TOKEN",
    "currency": "QRPH_CURRENCY",
    "payment_method": "QRPH_PAYMENT_METHOD",
    "request_timeout_seconds": "QRPH_REQUEST_TIMEOUT_SECONDS",
    "poll_interval_seconds": "QRPH_POLL_INTERVAL_SECONDS",
    "poll_timeout_seconds": "QRPH_POLL_TIMEOUT_SECONDS",
    "idempotency_store": "QRPH_IDEMPOTENCY_STORE",
    "idempotency_max_age_seconds": "QRPH_IDEMPOTENCY_MAX_AGE_SECONDS",
}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`ClientConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_client_config`.
    """

    api_base_url: Optional[str] = None
    auth_token: Optional[str] = None
    csrf_token: Optional[str] = None
    currency: Optional[str] = None
    payment_method: Optional[str] = None
    request_timeout_seconds: Optional[float | int | str] = None
    poll_interval_seconds: Optional[float | int | str] = None
    poll_timeout_seconds: Optional[float | int | str] = None
    idempotency_store: Optional[str] = None
    idempotency_max_age_seconds: Optional[float | int | str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:  # pragma: no cover - guarded by the signature
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


def _normalize_base_url(raw_url: Optional[str]) -> str:
    if raw_url is None:
        raise ConfigError("QRPH_API_BASE_URL must be provided")
    value = raw_url.strip().rstrip("/")
    if not value:
        raise ConfigError("QRPH_API_BASE_URL must not be empty")
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError(f"QRPH_API_BASE_URL is not a valid http(s) URL: '{value}'")
    return value


def _positive_seconds(values: Mapping[str, str], key: str, default: str) -> float:
    raw = values.get(key, default)
    try:
        seconds = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number of seconds, got '{raw}'") from exc
    if seconds <= 0:
        raise ConfigError(f"{key} must be greater than zero")
    return seconds


def _optional(values: Mapping[str, str], key: str) -> Optional[str]:
    value = values.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class ClientConfig:
    api_base_url: str
    auth_token: Optional[str] = None
    csrf_token: Optional[str] = None
    currency: str = "PHP"
    payment_method: str = "qrph"
    request_timeout_seconds: float = 60.0
    poll_interval_seconds: float = 6.0
    poll_timeout_seconds: float = 300.0
    idempotency_store: Optional[str] = None
    idempotency_max_age_seconds: float = 24 * 60 * 60

    def url(self, path: str) -> str:
        return f"{self.api_base_url}/{path.lstrip('/')}"

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ClientConfig":
        api_base_url = _normalize_base_url(values.get("QRPH_API_BASE_URL"))

        currency = (values.get("QRPH_CURRENCY") or "PHP").strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ConfigError(
                f"QRPH_CURRENCY must be a three-letter ISO code, got '{currency}'"
            )
        payment_method = (values.get("QRPH_PAYMENT_METHOD") or "qrph").strip()

        request_timeout = _positive_seconds(values, "QRPH_REQUEST_TIMEOUT_SECONDS", "60")
        poll_interval = _positive_seconds(values, "QRPH_POLL_INTERVAL_SECONDS", "6")
        poll_timeout = _positive_seconds(values, "QRPH_POLL_TIMEOUT_SECONDS", "300")
        if poll_timeout < poll_interval:
            raise ConfigError(
                "QRPH_POLL_TIMEOUT_SECONDS must not be shorter than QRPH_POLL_INTERVAL_SECONDS"
            )
        max_age = _positive_seconds(values, "QRPH_IDEMPOTENCY_MAX_AGE_SECONDS", "86400")

        return cls(
            api_base_url=api_base_url,
            auth_token=_optional(values, "QRPH_AUTH_TOKEN"),
            csrf_token=_optional(values, "QRPH_CSRF_TOKEN"),
            currency=currency,
            payment_method=payment_method,
            request_timeout_seconds=request_timeout,
            poll_interval_seconds=poll_interval,
            poll_timeout_seconds=poll_timeout,
            idempotency_store=_optional(values, "QRPH_IDEMPOTENCY_STORE"),
            idempotency_max_age_seconds=max_age,
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        parameters: Optional[ClientParameters] = None,
        api_base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        csrf_token: Optional[str] = None,
        currency: Optional[str] = None,
        payment_method: Optional[str] = None,
        request_timeout_seconds: Optional[float | int | str] = None,
        poll_interval_seconds: Optional[float | int | str] = None,
        poll_timeout_seconds: Optional[float | int | str] = None,
        idempotency_store: Optional[str] = None,
        idempotency_max_age_seconds: Optional[float | int | str] = None,
    ) -> "ClientConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "api_base_url": api_base_url,
                "auth_token": auth_token,
                "csrf_token": csrf_token,
                "currency": currency,
                "payment_method": payment_method,
                "request_timeout_seconds": request_timeout_seconds,
                "poll_interval_seconds": poll_interval_seconds,
                "poll_timeout_seconds": poll_timeout_seconds,
                "idempotency_store": idempotency_store,
                "idempotency_max_age_seconds": idempotency_max_age_seconds,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        for key in sorted(environment.variables):
            if key.startswith(ENV_PREFIX):
                logging.debug("%s taken from %s", key, environment.origin(key))
        return cls.from_mapping(environment.variables)


def load_client_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    api_base_url: Optional[str] = None,
    auth_token: Optional[str] = None,
    csrf_token: Optional[str] = None,
    currency: Optional[str] = None,
    payment_method: Optional[str] = None,
    request_timeout_seconds: Optional[float | int | str] = None,
    poll_interval_seconds: Optional[float | int | str] = None,
    poll_timeout_seconds: Optional[float | int | str] = None,
    idempotency_store: Optional[str] = None,
    idempotency_max_age_seconds: Optional[float | int | str] = None,
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    The configuration can be provided entirely through environment variables,
    a ``.env`` file, direct keyword arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        api_base_url=api_base_url,
        auth_token=auth_token,
        csrf_token=csrf_token,
        currency=currency,
        payment_method=payment_method,
        request_timeout_seconds=request_timeout_seconds,
        poll_interval_seconds=poll_interval_seconds,
        poll_timeout_seconds=poll_timeout_seconds,
        idempotency_store=idempotency_store,
        idempotency_max_age_seconds=idempotency_max_age_seconds,
    )
