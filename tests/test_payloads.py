import datetime as dt
from decimal import Decimal

import pytest

from qrph_payments.core.auth import CallableAuthProvider, StaticAuthProvider
from qrph_payments.core.config import ClientConfig
from qrph_payments.core.errors import ValidationError
from qrph_payments.core.models import CheckoutItem
from qrph_payments.core.payloads import build_checkout_request, checkout_payload, to_minor_units


@pytest.mark.parametrize(
    "amount, expected",
    [
        (149.5, 14950),
        ("0.005", 1),
        (Decimal("10.004"), 1000),
        (0.1 + 0.2, 30),
        (250, 25000),
    ],
)
def test_to_minor_units_rounds_half_up(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.parametrize("amount", ["abc", "NaN", True])
def test_to_minor_units_rejects_garbage(amount):
    with pytest.raises(ValidationError):
        to_minor_units(amount)


@pytest.mark.parametrize("checkout", [None, {}, {"items": []}, {"items": None}])
def test_checkout_payload_requires_items(checkout):
    with pytest.raises(ValidationError, match="Checkout data with items is required"):
        checkout_payload(checkout)


def test_static_auth_headers():
    provider = StaticAuthProvider("tok", "csrf")
    assert provider.headers() == {"Authorization": "Bearer tok"}
    assert provider.headers(include_csrf=True) == {
        "Authorization": "Bearer tok",
        "x-csrf-token": "csrf",
    }
    assert StaticAuthProvider().headers(include_csrf=True) == {"Authorization": "Bearer"}


def test_callable_auth_reads_current_tokens():
    tokens = {"token": "first"}
    provider = CallableAuthProvider(lambda: tokens["token"], lambda: None)

    assert provider.headers()["Authorization"] == "Bearer first"
    tokens["token"] = "refreshed"
    assert provider.headers(include_csrf=True) == {"Authorization": "Bearer refreshed"}


def test_checkout_request_normalizes_rich_values():
    config = ClientConfig(api_base_url="https://api.test")
    checkout = {
        "items": [CheckoutItem(vendor_id="v1", product_id="p1", price=50.0, quantity=2)],
        "customerName": "Maria",
        "shippingFee": Decimal("85.50"),
    }

    body = build_checkout_request(
        config,
        amount=Decimal("185.50"),
        description="Order",
        metadata={"total": Decimal("10.00"), "placedOn": dt.date(2026, 10, 18), "tags": ("a", "b")},
        checkout=checkout,
    )

    assert body["metadata"] == {"total": 10, "placedOn": "2026-10-18", "tags": ["a", "b"]}
    assert body["checkoutData"]["items"] == [
        {"vendorId": "v1", "productId": "p1", "price": 50.0, "quantity": 2}
    ]
    assert body["checkoutData"]["shippingFee"] == 85.5


@pytest.mark.parametrize(
    "metadata",
    [
        {"when": object()},
        {"ratio": float("inf")},
        {"total": Decimal("NaN")},
        {1: "numeric key"},
    ],
)
def test_checkout_request_rejects_unencodable_metadata(metadata):
    config = ClientConfig(api_base_url="https://api.test")

    with pytest.raises(ValidationError):
        build_checkout_request(
            config,
            amount=10,
            description="Order",
            metadata=metadata,
            checkout={"items": [{"productId": "p1"}]},
        )
