"""
Data objects exchanged with the payment API and returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .status import map_backend_status

__all__ = [
    "CancelResult",
    "CheckoutData",
    "CheckoutItem",
    "IntentResult",
    "PaymentIntent",
    "QrDownloadResult",
    "ShippingAddress",
    "StatusResult",
]


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class CheckoutItem:
    vendor_id: str
    product_id: str
    price: float
    quantity: int
    option_id: Optional[str] = None
    item_id: Optional[str] = None
    name: Optional[str] = None
    label: Optional[str] = None
    img_url: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "vendorId": self.vendor_id,
                "productId": self.product_id,
                "optionId": self.option_id,
                "itemId": self.item_id,
                "name": self.name,
                "label": self.label,
                "imgUrl": self.img_url,
                "price": self.price,
                "quantity": self.quantity,
            }
        )


@dataclass(frozen=True)
class ShippingAddress:
    street: Optional[str] = None
    barangay: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip_code: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "street": self.street,
                "barangay": self.barangay,
                "city": self.city,
                "province": self.province,
                "zipCode": self.zip_code,
            }
        )


@dataclass(frozen=True)
class CheckoutData:
    """
    Checkout snapshot submitted alongside a payment intent.

    The backend turns it into orders once the payment succeeds.
    """

    items: List[CheckoutItem]
    customer_name: str
    phone: str
    shipping_address: ShippingAddress = field(default_factory=ShippingAddress)
    shipping_option: Optional[str] = None
    shipping_fee: Optional[float] = None
    agreement_details: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "items": [item.as_payload() for item in self.items],
                "shippingAddress": self.shipping_address.as_payload(),
                "customerName": self.customer_name,
                "phone": self.phone,
                "shippingOption": self.shipping_option,
                "shippingFee": self.shipping_fee,
                "agreementDetails": self.agreement_details,
            }
        )


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    payment_intent_id: str
    status: str
    amount: Any
    currency: str
    qr_code_url: Optional[str] = None
    expires_at: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "PaymentIntent":
        return cls(
            id=str(payload.get("_id") or payload.get("id") or ""),
            payment_intent_id=str(payload.get("paymentIntentId") or ""),
            status=map_backend_status(payload.get("status")),
            amount=payload.get("amount"),
            currency=str(payload.get("currency") or ""),
            qr_code_url=payload.get("qrCodeUrl"),
            expires_at=payload.get("expiresAt"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class IntentResult:
    success: bool
    payment: Optional[PaymentIntent] = None
    checkout_url: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "IntentResult":
        payment_raw = payload.get("payment")
        payment = (
            PaymentIntent.from_response(payment_raw)
            if isinstance(payment_raw, Mapping)
            else None
        )
        success = bool(payload.get("success", True))
        error = None
        if not success:
            error = payload.get("message") or payload.get("error") or "Failed to create payment"
        return cls(
            success=success,
            payment=payment,
            checkout_url=payload.get("checkoutUrl"),
            raw=dict(payload),
            error=error,
            error_type=None if success else "transport",
        )

    @classmethod
    def failure(cls, error: str, error_type: str) -> "IntentResult":
        return cls(success=False, error=error, error_type=error_type)


@dataclass(frozen=True)
class StatusResult:
    """
    Normalized status lookup.

    ``status`` is the backend's own word for the state; map it with
    :func:`qrph_payments.core.status.map_backend_status` before comparing.
    """

    success: bool
    status: str
    payment: Optional[Mapping[str, Any]] = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "StatusResult":
        data = payload.get("data")
        nested = data if isinstance(data, Mapping) else {}
        status = nested.get("status") or payload.get("status") or "pending"
        payment = nested or payload.get("payment")
        return cls(
            success=bool(payload.get("success", True)),
            status=str(status),
            payment=payment if isinstance(payment, Mapping) else None,
            raw=dict(payload),
        )

    @classmethod
    def failure(cls, error: str, error_type: str) -> "StatusResult":
        return cls(success=False, status="failed", error=error, error_type=error_type)


@dataclass(frozen=True)
class CancelResult:
    success: bool
    already_final: bool = False
    error: Optional[str] = None
    error_type: Optional[str] = None


@dataclass(frozen=True)
class QrDownloadResult:
    success: bool
    content: Optional[bytes] = field(default=None, repr=False)
    content_type: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
