#!/usr/bin/env python3
"""
Relay Notifier Module
Forwards committed intent notifications to an off-process relayer webhook
"""

import logging
import queue
import threading
from typing import Iterable, Optional, Tuple, Type

import requests

from intent_platform.domain.events import IntentCreated, LedgerEvent, SignalSent

logger = logging.getLogger(__name__)

DEFAULT_RELAYED_EVENTS: Tuple[Type[LedgerEvent], ...] = (IntentCreated, SignalSent)


class RelayNotifier:
    """
    Fire-and-forget webhook relay.

    Ledger subscribers run under the ledger lock, so events are only
    queued there. A worker thread performs the HTTP delivery.
    Failed deliveries are logged and dropped.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10,
        relayed_events: Iterable[Type[LedgerEvent]] = DEFAULT_RELAYED_EVENTS,
        session: Optional[requests.Session] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.relayed_events = tuple(relayed_events)
        self.session = session or requests.Session()
        self._queue: "queue.Queue[Optional[dict]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self.delivered = 0
        self.failed = 0

    # -----------------------------
    # LEDGER SUBSCRIBER
    # -----------------------------
    def __call__(self, event: LedgerEvent) -> None:
        if isinstance(event, self.relayed_events):
            self._queue.put(event.to_dict())

    # -----------------------------
    # WORKER
    # -----------------------------
    def start(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._worker = threading.Thread(
            target=self._run, name="RelayNotifier", daemon=True
        )
        self._worker.start()
        logger.info(f"Relay notifier started → {self.webhook_url}")

    def stop(self, timeout: float = 5) -> None:
        if not self._worker:
            return
        self._queue.put(None)
        self._worker.join(timeout=timeout)
        if self._worker.is_alive():
            logger.warning("Relay notifier did not stop within %.1fs", timeout)
        self._worker = None

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            if message is None:
                break
            self.deliver(message)

    def drain(self) -> int:
        """Deliver everything queued, synchronously. Returns messages processed."""
        processed = 0
        while True:
            try:
                message = self._queue.get_nowait()
            except queue.Empty:
                return processed
            if message is None:
                continue
            self.deliver(message)
            processed += 1

    # -----------------------------
    # DELIVERY
    # -----------------------------
    def deliver(self, message: dict) -> bool:
        """POST one notification. Never raises."""
        try:
            response = self.session.post(
                self.webhook_url, json=message, timeout=self.timeout
            )
            if 200 <= response.status_code < 300:
                self.delivered += 1
                logger.debug(f"Relayed {message.get('event')} notification")
                return True

            logger.error(
                f"Relay rejected {message.get('event')}: HTTP {response.status_code}"
            )
        except requests.exceptions.Timeout:
            logger.error("Relay webhook timeout")
        except requests.exceptions.RequestException as e:
            logger.error(f"Relay request error: {e}")

        self.failed += 1
        return False
