#!/usr/bin/env python3
"""
Intent Lifecycle Tracking Logger
================================

Logs every committed lifecycle event of the platform:
  Intent Created → Filled → Reclaimed, plus cross-domain signals

One JSON object per line in <log_dir>/intent_tracking.log.
Helps reconstruct the fill order of an intent after the fact.

Ledger subscribers run under the ledger lock, so the subscriber only
queues a record. The file is written by a worker thread (start/stop),
or synchronously with drain().
"""

import json
import logging
import queue
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from intent_platform.domain.events import (
    IntentCreated,
    IntentFilled,
    IntentReclaimed,
    LedgerEvent,
    SignalSent,
)

logger = logging.getLogger(__name__)

_TRACKED = (IntentCreated, IntentFilled, IntentReclaimed, SignalSent)


class IntentTracker:
    """Track intent lifecycle through committed ledger events"""

    def __init__(self, log_dir: Union[str, Path]):
        self.log_file = Path(log_dir) / "intent_tracking.log"
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self._queue: "queue.Queue[Optional[LedgerEvent]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    # -----------------------------
    # LEDGER SUBSCRIBER
    # -----------------------------
    def __call__(self, event: LedgerEvent) -> None:
        if isinstance(event, _TRACKED):
            self._queue.put(event)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    # -----------------------------
    # WORKER
    # -----------------------------
    def start(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._worker = threading.Thread(
            target=self._run, name="IntentTracker", daemon=True
        )
        self._worker.start()

    def stop(self, timeout: float = 5) -> None:
        """Write everything queued so far, then stop the worker."""
        if not self._worker:
            return
        self._queue.put(None)
        self._worker.join(timeout=timeout)
        if self._worker.is_alive():
            logger.warning("Intent tracker did not stop within %.1fs", timeout)
        self._worker = None

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            if event is None:
                break
            self.record(event)

    def drain(self) -> int:
        """Write everything queued, synchronously. Returns records written."""
        written = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return written
            if event is None:
                continue
            self.record(event)
            written += 1

    # -----------------------------
    # RECORDING
    # -----------------------------
    def record(self, event: LedgerEvent) -> None:
        msg = event.to_dict()
        msg["stage"] = msg.pop("event")
        msg["timestamp"] = datetime.utcnow().isoformat()
        self._write_log(msg)

        if isinstance(event, IntentCreated):
            logger.info(f"📝 CREATED | {event.intent} | creator={event.creator}")
        elif isinstance(event, IntentFilled):
            logger.info(f"🎯 FILLED | {event.intent} | filler={event.filler} seq={event.sequence}")
        elif isinstance(event, IntentReclaimed):
            logger.info(f"↩️ RECLAIMED | {event.intent} | filler={event.filler} left={event.remaining_fills}")
        else:
            logger.info(f"📡 SIGNAL | caller={event.caller} domain={event.destination_domain}")

    def _write_log(self, msg: Dict[str, Any]):
        """Append one line to the intent tracking log file"""
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(msg) + "\n")
        except OSError as e:
            logger.exception(f"Failed to write intent log: {e}")
