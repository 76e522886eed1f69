"""Dispatcher: owns the event queue and runs the flush/retry protocol."""

from __future__ import annotations

import logging
import threading

from aptabase_nomad._queue import EventQueue
from aptabase_nomad._transport import Transport
from aptabase_nomad._types import EventRecord

logger = logging.getLogger("aptabase_nomad.dispatcher")


class Dispatcher:
    """Batches queued events and delivers them through a Transport.

    A flush drains the whole queue into one batch and sends it once. When
    the transport reports failure the batch goes back to the head of the
    queue untouched and is retried on the next flush; there is no backoff
    and no retry ceiling. At most one flush runs at a time.

    ``start`` launches a daemon thread that flushes every
    ``flush_interval_s`` seconds until ``stop`` is called.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        flush_interval_s: float = 60.0,
        queue: EventQueue | None = None,
    ) -> None:
        self._transport = transport
        self._flush_interval_s = flush_interval_s
        self._queue = queue if queue is not None else EventQueue()
        self._flush_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def enqueue(self, event: EventRecord) -> None:
        self._queue.enqueue(event)

    def flush(self) -> bool:
        """Run one flush cycle. Returns True when a batch was delivered.

        A call made while another flush is in flight returns False at once.
        """
        if not self._flush_lock.acquire(blocking=False):
            logger.debug("Flush already in progress, skipping")
            return False
        try:
            return self._flush_batch()
        finally:
            self._flush_lock.release()

    def _flush_batch(self) -> bool:
        batch = self._queue.drain_all()
        if not batch:
            return False

        try:
            delivered = self._transport.send(batch)
        except Exception:
            logger.warning("Transport raised while sending %d events", len(batch), exc_info=True)
            delivered = False

        if not delivered:
            self._queue.restore(batch)
            logger.info("Delivery failed, %d events kept for the next flush", len(batch))
            return False

        logger.debug("Delivered %d events", len(batch))
        return True

    def start(self) -> None:
        """Start the periodic flush loop."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="aptabase-nomad-flush", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal stop, wait for the loop to exit and make a final flush."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self.flush()

    def _run(self) -> None:
        while not self._stop_event.wait(timeout=self._flush_interval_s):
            try:
                self.flush()
            except Exception:
                logger.exception("Periodic flush failed, continuing")

    @property
    def flush_interval_s(self) -> float:
        return self._flush_interval_s

    @property
    def pending(self) -> int:
        """Number of events waiting for delivery."""
        return len(self._queue)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
