"""
Helpers for constructing the JSON bodies sent to the payment API.
"""

from __future__ import annotations

import datetime as dt
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Union

from .config import ClientConfig
from .errors import ValidationError
from .models import CheckoutData

__all__ = [
    "EMPTY_CHECKOUT_MESSAGE",
    "build_checkout_request",
    "checkout_payload",
    "to_minor_units",
]

EMPTY_CHECKOUT_MESSAGE = "Checkout data with items is required for QRPH payment"

CheckoutInput = Union[CheckoutData, Mapping[str, Any]]


def _jsonable(value: Any, where: str) -> Any:
    """
    Turn ``value`` into plain JSON types.

    Decimals become numbers, objects with ``as_payload`` are rendered, dates
    become ISO strings. Anything else raises :class:`ValidationError`.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"{where} contains a non-finite number")
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"{where} contains a non-finite number")
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if hasattr(value, "as_payload"):
        return _jsonable(value.as_payload(), where)
    if isinstance(value, Mapping):
        rendered: Dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValidationError(f"{where} has a non-string key: {key!r}")
            rendered[key] = _jsonable(item, f"{where}.{key}")
        return rendered
    if isinstance(value, (list, tuple)):
        return [_jsonable(item, f"{where}[{index}]") for index, item in enumerate(value)]
    raise ValidationError(f"{where} is not JSON serializable: {type(value).__name__}")


def to_minor_units(amount: Decimal | str | float | int) -> int:
    """
    Convert a major-unit amount to centavos, rounding half up.
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Invalid payment amount: {amount!r}")
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid payment amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValidationError(f"Invalid payment amount: {amount!r}")
    return int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def checkout_payload(checkout: Optional[CheckoutInput]) -> Dict[str, Any]:
    """
    Render ``checkout`` for the wire, rejecting payloads without items.
    """
    if isinstance(checkout, CheckoutData):
        items: Any = checkout.items
    elif isinstance(checkout, Mapping):
        items = checkout.get("items")
    else:
        items = None
    if not items:
        raise ValidationError(EMPTY_CHECKOUT_MESSAGE)
    return _jsonable(checkout, "checkoutData")


def build_checkout_request(
    config: ClientConfig,
    *,
    amount: Decimal | str | float | int,
    description: str,
    metadata: Optional[Mapping[str, Any]],
    checkout: Optional[CheckoutInput],
) -> Dict[str, Any]:
    """
    Build the body for ``POST /payments/checkout``.

    The result holds only plain JSON types, so ``requests`` can always encode it.
    """
    checkout_data = checkout_payload(checkout)
    return {
        "amount": to_minor_units(amount),
        "currency": config.currency,
        "paymentMethod": config.payment_method,
        "description": description,
        "metadata": _jsonable(metadata or {}, "metadata"),
        "checkoutData": checkout_data,
    }
