import json
import re

import pytest

from qrph_payments.core.errors import ValidationError
from qrph_payments.core.idempotency import IdempotencyKeyStore
from qrph_payments.core.storage import FileSessionStorage


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_get_or_create_is_stable_until_cleared(key_store):
    key = key_store.scope_key("cancelPayment", "pay_1")

    first = key_store.get_or_create(key)
    assert key_store.get_or_create(key) == first
    assert re.fullmatch(r"[0-9a-f]{32}", first)

    key_store.clear(key)
    assert key_store.peek(key) is None
    assert key_store.get_or_create(key) != first


def test_scope_keys_are_per_operation_and_resource(key_store):
    assert key_store.scope_key("cancelPayment", "pay_1") == "idem.cancelPayment.pay_1"
    a = key_store.get_or_create(key_store.scope_key("cancelPayment", "pay_1"))
    b = key_store.get_or_create(key_store.scope_key("cancelPayment", "pay_2"))
    assert a != b

    with pytest.raises(ValidationError):
        key_store.scope_key("cancelPayment", "")


def test_clear_missing_key_is_noop(key_store):
    key_store.clear("idem.cancelPayment.unknown")


def test_file_storage_survives_new_instances(tmp_path):
    path = tmp_path / "session" / "idempotency.json"
    first = IdempotencyKeyStore(FileSessionStorage(path))
    token = first.get_or_create("idem.cancelPayment.pay_1")

    second = IdempotencyKeyStore(FileSessionStorage(path))
    assert second.get_or_create("idem.cancelPayment.pay_1") == token

    second.clear("idem.cancelPayment.pay_1")
    assert FileSessionStorage(path).get("idem.cancelPayment.pay_1") is None


def test_file_storage_forgets_old_entries(tmp_path):
    clock = FakeClock()
    storage = FileSessionStorage(tmp_path / "idem.json", max_age_seconds=60, clock=clock)
    storage.set("idem.cancelPayment.pay_1", "abc")
    assert storage.get("idem.cancelPayment.pay_1") == "abc"

    clock.now += 61
    assert storage.get("idem.cancelPayment.pay_1") is None

    storage.set("idem.cancelPayment.pay_2", "def")
    stored = json.loads((tmp_path / "idem.json").read_text(encoding="utf-8"))
    assert list(stored) == ["idem.cancelPayment.pay_2"]


def test_file_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "idem.json"
    path.write_text("{not json", encoding="utf-8")
    storage = FileSessionStorage(path)

    assert storage.get("idem.cancelPayment.pay_1") is None
    storage.set("idem.cancelPayment.pay_1", "abc")
    assert storage.get("idem.cancelPayment.pay_1") == "abc"
