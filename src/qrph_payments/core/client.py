"""
HTTP client for the QRPH payment endpoints.
"""

from __future__ import annotations

import logging
import threading
import time
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

import requests

from .auth import AuthProvider, StaticAuthProvider
from .config import ClientConfig
from .errors import ClientError, StorageError, TransportError, extract_error_message
from .idempotency import IdempotencyKeyStore
from .models import CancelResult, IntentResult, QrDownloadResult, StatusResult
from .payloads import CheckoutInput, build_checkout_request
from .storage import FileSessionStorage, MemorySessionStorage

__all__ = [
    "CANCEL_OPERATION",
    "PaymentIntentClient",
]

CANCEL_OPERATION = "cancelPayment"

_ALREADY_FINAL_MARKERS = ("already",)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _json_body(response: requests.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _reports_already_final(body: Mapping[str, Any]) -> bool:
    if body.get("alreadyCancelled") or body.get("alreadyFinal"):
        return True
    message = str(body.get("message") or body.get("status") or "").lower()
    return any(marker in message for marker in _ALREADY_FINAL_MARKERS)


def _default_key_store(config: ClientConfig) -> IdempotencyKeyStore:
    if config.idempotency_store:
        return IdempotencyKeyStore(
            FileSessionStorage(
                config.idempotency_store,
                max_age_seconds=config.idempotency_max_age_seconds,
            )
        )
    return IdempotencyKeyStore(MemorySessionStorage())


class PaymentIntentClient:
    """
    Issues payment intent requests and normalizes their outcomes.

    Every public operation returns a result object with a ``success`` flag;
    network failures and rejected requests are reported there instead of being
    raised. Mutating calls that must not be applied twice carry an
    ``Idempotency-Key`` header from :class:`IdempotencyKeyStore`.

    Requests on the shared session go out one at a time, since poll sessions
    call the client from worker threads.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        auth: Optional[AuthProvider] = None,
        key_store: Optional[IdempotencyKeyStore] = None,
    ) -> None:
        self.config = config
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.auth: AuthProvider = auth or StaticAuthProvider(config.auth_token, config.csrf_token)
        self.key_store = key_store or _default_key_store(config)
        self._session_lock = threading.Lock()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "PaymentIntentClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _send(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> requests.Response:
        url = self.config.url(path)
        try:
            with self._session_lock:
                response = self.session.request(
                    method,
                    url,
                    headers=dict(headers or {}),
                    timeout=self.config.request_timeout_seconds,
                    **kwargs,
                )
        except requests.RequestException as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        if not _is_success(response.status_code):
            raise TransportError.from_response(response)
        return response

    def create_intent(
        self,
        amount: Decimal | str | float | int,
        description: str,
        metadata: Optional[Mapping[str, Any]] = None,
        checkout: Optional[CheckoutInput] = None,
    ) -> IntentResult:
        """
        Create a QRPH payment intent for ``checkout``.

        A checkout without items is rejected before anything is sent.
        """
        try:
            body = build_checkout_request(
                self.config,
                amount=amount,
                description=description,
                metadata=metadata,
                checkout=checkout,
            )
        except ClientError as exc:
            logging.warning("Refusing to create payment: %s", exc)
            return IntentResult.failure(str(exc), exc.error_type)

        logging.info("Creating %s payment for %s minor units", self.config.payment_method, body["amount"])
        try:
            response = self._send(
                "POST",
                "/payments/checkout",
                headers=self.auth.headers(),
                json=body,
            )
        except TransportError as exc:
            logging.error("Failed to create payment: %s", exc)
            return IntentResult.failure(
                extract_error_message(exc, "Failed to create payment"), exc.error_type
            )

        result = IntentResult.from_response(_json_body(response))
        if result.payment is not None:
            logging.info(
                "Created payment %s (intent %s)",
                result.payment.id,
                result.payment.payment_intent_id,
            )
        return result

    def query_status(self, payment_id: str) -> StatusResult:
        """
        Fetch the current status of ``payment_id`` bypassing any HTTP caches.
        """
        headers = dict(self.auth.headers())
        headers["Cache-Control"] = "no-cache"
        try:
            response = self._send(
                "GET",
                f"/payments/status/{payment_id}",
                headers=headers,
                params={"t": int(time.time() * 1000)},
            )
        except TransportError as exc:
            logging.warning("Failed to check payment status for %s: %s", payment_id, exc)
            return StatusResult.failure(
                extract_error_message(exc, "Failed to check payment status"), exc.error_type
            )
        return StatusResult.from_response(_json_body(response))

    def cancel(self, payment_id: str) -> CancelResult:
        """
        Cancel ``payment_id``.

        The idempotency token is kept after a failure so that a retry is
        recognised by the backend as the same cancellation.
        """
        try:
            scope_key = self.key_store.scope_key(CANCEL_OPERATION, payment_id)
            token = self.key_store.get_or_create(scope_key)
        except ClientError as exc:
            logging.error("Cannot cancel payment %r: %s", payment_id, exc)
            return CancelResult(success=False, error=str(exc), error_type=exc.error_type)

        headers = dict(self.auth.headers(include_csrf=True))
        headers["Idempotency-Key"] = token
        try:
            response = self._send(
                "POST",
                f"/payments/{payment_id}/cancel",
                headers=headers,
                json={},
            )
        except TransportError as exc:
            logging.error("Failed to cancel payment %s: %s", payment_id, exc)
            return CancelResult(
                success=False,
                error=extract_error_message(exc, "Failed to cancel payment"),
                error_type=exc.error_type,
            )

        try:
            self.key_store.clear(scope_key)
        except StorageError as exc:
            logging.error("Payment %s cancelled but its token was kept: %s", payment_id, exc)
        already_final = _reports_already_final(_json_body(response))
        if already_final:
            logging.info("Payment %s was already in a final state", payment_id)
        else:
            logging.info("Cancelled payment %s", payment_id)
        return CancelResult(success=True, already_final=already_final)

    def fetch_qr_url(self, payment_intent_id: str) -> Optional[str]:
        """
        Return the QR code URL of an intent, or ``None`` when there is none.
        """
        try:
            response = self._send(
                "GET",
                f"/payments/{payment_intent_id}/qr",
                headers=self.auth.headers(),
            )
        except TransportError as exc:
            logging.error("Failed to get QR code for %s: %s", payment_intent_id, exc)
            return None
        return _json_body(response).get("qrCodeUrl") or None

    def download_qr(self, payment_id: str) -> QrDownloadResult:
        try:
            response = self._send(
                "GET",
                f"/payments/{payment_id}/qr/download",
                headers=self.auth.headers(),
            )
        except TransportError as exc:
            logging.error("Failed to download QR code for %s: %s", payment_id, exc)
            return QrDownloadResult(
                success=False,
                error=extract_error_message(exc, "Failed to download QR code"),
                error_type=exc.error_type,
            )
        return QrDownloadResult(
            success=True,
            content=response.content,
            content_type=response.headers.get("Content-Type"),
        )
