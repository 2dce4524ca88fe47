import json
import threading
import time

import pytest
import requests

from qrph_payments.core.config import ClientConfig
from qrph_payments.core.idempotency import IdempotencyKeyStore
from qrph_payments.core.models import StatusResult
from qrph_payments.core.storage import MemorySessionStorage


def make_response(status_code=200, body=None, *, content=None, headers=None):
    response = requests.Response()
    response.status_code = status_code
    if content is None:
        content = json.dumps(body if body is not None else {}).encode("utf-8")
    response._content = content
    response.headers.update(headers or {"Content-Type": "application/json"})
    response.url = "https://api.test"
    return response


class FakeStatusSource:
    """Returns the queued results in order, repeating the last one forever."""

    def __init__(self, results, *, delay=0.0, config=None):
        self._results = list(results)
        self.delay = delay
        self.config = config
        self.calls = 0
        self.concurrent = 0
        self.max_concurrent = 0
        self._lock = threading.Lock()

    def query_status(self, payment_id):
        with self._lock:
            self.calls += 1
            self.concurrent += 1
            self.max_concurrent = max(self.max_concurrent, self.concurrent)
            index = min(self.calls - 1, len(self._results) - 1)
        try:
            if self.delay:
                time.sleep(self.delay)
            result = self._results[index]
            if isinstance(result, StatusResult):
                return result
            return StatusResult(success=True, status=result, payment={"_id": payment_id})
        finally:
            with self._lock:
                self.concurrent -= 1


@pytest.fixture
def config():
    return ClientConfig(
        api_base_url="https://api.test",
        auth_token="tok_123",
        csrf_token="csrf_456",
    )


@pytest.fixture
def storage():
    return MemorySessionStorage()


@pytest.fixture
def key_store(storage):
    return IdempotencyKeyStore(storage)


@pytest.fixture
def session(mocker):
    return mocker.Mock(spec=requests.Session)
