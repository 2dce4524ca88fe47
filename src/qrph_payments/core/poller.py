"""
Status polling for payments processed outside the client.

A :class:`PollSession` checks a payment right away, then on a fixed interval,
and gives up with ``expired`` once its timeout passes. Callers only hear about
status changes. The session stops for good at the first terminal status.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Protocol

from .models import StatusResult
from .status import PaymentStatus, is_terminal, map_backend_status

__all__ = [
    "PollSession",
    "StatusCallback",
    "StatusPoller",
    "StatusSource",
]

StatusCallback = Callable[[str, Optional[Any]], None]


class StatusSource(Protocol):
    def query_status(self, payment_id: str) -> StatusResult:
        ...


class PollSession:
    """
    One observation of one payment.

    ``stop()`` cancels both timers and raises the ``stopped`` guard that every
    tick and every completed check looks at, so a response that lands after
    the stop is dropped.
    """

    def __init__(
        self,
        source: StatusSource,
        payment_id: str,
        on_change: StatusCallback,
        *,
        interval_seconds: float,
        timeout_seconds: float,
        loop: asyncio.AbstractEventLoop,
        on_stop: Optional[Callable[["PollSession"], None]] = None,
    ) -> None:
        if interval_seconds <= 0 or timeout_seconds <= 0:
            raise ValueError("interval_seconds and timeout_seconds must be positive")
        self.payment_id = payment_id
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self.last_status: Optional[str] = None
        self.stopped = False
        self._source = source
        self._on_change = on_change
        self._on_stop = on_stop
        self._loop = loop
        self._interval_handle: Optional[asyncio.TimerHandle] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._started = False
        self._finished: asyncio.Future = loop.create_future()

    def start(self) -> None:
        if self._started:
            raise RuntimeError(f"Poll session for {self.payment_id} was already started")
        self._started = True
        logging.info(
            "Polling payment %s every %.1fs (timeout %.1fs)",
            self.payment_id,
            self.interval_seconds,
            self.timeout_seconds,
        )
        self._timeout_handle = self._loop.call_later(self.timeout_seconds, self._expire)
        self._schedule_next()
        self._launch_check()

    def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        if self._interval_handle is not None:
            self._interval_handle.cancel()
            self._interval_handle = None
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        if not self._finished.done():
            self._finished.set_result(self.last_status)
        logging.debug("Stopped polling payment %s", self.payment_id)
        if self._on_stop is not None:
            self._on_stop(self)

    async def wait(self) -> Optional[str]:
        """Wait until the session stops and return the last reported status."""
        return await asyncio.shield(self._finished)

    def _schedule_next(self) -> None:
        self._interval_handle = self._loop.call_later(self.interval_seconds, self._tick)

    def _tick(self) -> None:
        if self.stopped:
            return
        self._schedule_next()
        self._launch_check()

    def _launch_check(self) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            logging.debug("Skipping check for %s; previous one still running", self.payment_id)
            return
        self._in_flight = self._loop.create_task(self._check())

    async def _check(self) -> None:
        if self.stopped:
            return
        try:
            response = await asyncio.to_thread(self._source.query_status, self.payment_id)
        except Exception:  # noqa: BLE001
            logging.exception("Status check for %s raised, retrying on next tick", self.payment_id)
            return
        if self.stopped:
            logging.debug("Discarding late status for %s", self.payment_id)
            return

        if not response.success:
            logging.warning(
                "Status check for %s failed, retrying on next tick: %s",
                self.payment_id,
                response.error,
            )
            return

        status = map_backend_status(response.status)
        if status != self.last_status:
            self.last_status = status
            self._notify(status, response.payment)

        if is_terminal(response.status):
            logging.info("Payment %s reached terminal status %s", self.payment_id, status)
            self.stop()

    def _expire(self) -> None:
        if self.stopped:
            return
        logging.warning(
            "Payment %s did not settle within %.1fs; reporting expired",
            self.payment_id,
            self.timeout_seconds,
        )
        self._timeout_handle = None
        expired = PaymentStatus.EXPIRED.value
        self.last_status = expired
        self.stop()
        self._notify(expired, None)

    def _notify(self, status: str, payload: Optional[Any]) -> None:
        try:
            self._on_change(status, payload)
        except Exception:  # noqa: BLE001
            logging.exception("Status callback for %s raised", self.payment_id)


class StatusPoller:
    """
    Owns the poll sessions of one client, at most one per payment id.

    ``dispose()`` stops every session; use it when the owning component goes
    away. Checks run on worker threads, so the source must tolerate calls from
    several threads; :class:`PaymentIntentClient` serializes its own session.
    """

    def __init__(
        self,
        source: StatusSource,
        *,
        interval_seconds: float = 6.0,
        timeout_seconds: float = 300.0,
    ) -> None:
        self.source = source
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self._sessions: Dict[str, PollSession] = {}

    def start(
        self,
        payment_id: str,
        on_change: StatusCallback,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Callable[[], None]:
        """
        Start polling ``payment_id`` and return a function that stops it.

        Must be called from a running event loop. Any session already running
        for the same payment is stopped first.
        """
        loop = asyncio.get_running_loop()
        session = PollSession(
            self.source,
            payment_id,
            on_change,
            interval_seconds=self.interval_seconds if interval_seconds is None else interval_seconds,
            timeout_seconds=self.timeout_seconds if timeout_seconds is None else timeout_seconds,
            loop=loop,
            on_stop=self._forget,
        )
        self.stop(payment_id)
        self._sessions[payment_id] = session
        session.start()
        return session.stop

    def session(self, payment_id: str) -> Optional[PollSession]:
        return self._sessions.get(payment_id)

    def is_active(self, payment_id: str) -> bool:
        return payment_id in self._sessions

    def stop(self, payment_id: str) -> None:
        session = self._sessions.get(payment_id)
        if session is not None:
            session.stop()

    async def wait(self, payment_id: str) -> Optional[str]:
        session = self._sessions.get(payment_id)
        if session is None:
            return None
        return await session.wait()

    def dispose(self) -> None:
        for session in list(self._sessions.values()):
            session.stop()

    def _forget(self, session: PollSession) -> None:
        if self._sessions.get(session.payment_id) is session:
            del self._sessions[session.payment_id]
