import pytest

from qrph_payments.core.status import PaymentStatus, is_terminal, map_backend_status


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("awaiting_payment", "pending"),
        ("paid", "succeeded"),
        ("succeeded", "succeeded"),
        ("processing", "processing"),
        ("failed", "failed"),
        ("expired", "expired"),
        ("weird_unknown", "weird_unknown"),
        (None, "pending"),
        (PaymentStatus.FAILED, "failed"),
    ],
)
def test_map_backend_status(raw, expected):
    assert map_backend_status(raw) == expected


@pytest.mark.parametrize("status", ["succeeded", "failed", "expired", "paid"])
def test_terminal_statuses(status):
    assert is_terminal(status)


@pytest.mark.parametrize("status", ["pending", "processing", "awaiting_payment", "on_hold"])
def test_non_terminal_statuses(status):
    assert not is_terminal(status)
