"""Client façade: builds events from track() calls and hands them to the Dispatcher."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from types import TracebackType
from typing import Any

from aptabase_nomad._config import AptabaseConfig
from aptabase_nomad._device import DeviceContext, PlatformDeviceContext, default_device_id
from aptabase_nomad._dispatcher import Dispatcher
from aptabase_nomad._session import generate_session_id
from aptabase_nomad._transport import HTTPTransport, Transport
from aptabase_nomad._types import EventRecord, PropValue, SystemProps, sanitize_props

logger = logging.getLogger("aptabase_nomad.client")

SDK_VERSION = "aptabase-python-nomad@0.1.0"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Client:
    """Long-lived analytics handle, constructed once by the host application.

    Usage::

        config = AptabaseConfig.from_app_key("A-EU-1234567890")
        with Client(config) as client:
            client.track("app_started", {"plan": "pro"})

    ``track`` and ``flush`` never block on the network and never raise;
    delivery problems are only visible in the logs.
    """

    def __init__(
        self,
        config: AptabaseConfig,
        *,
        device: DeviceContext | None = None,
        user_id: uuid.UUID | None = None,
        transport: Transport | None = None,
        clock: Clock | None = None,
        start: bool = True,
    ) -> None:
        self.config = config
        self._device = (
            device
            if device is not None
            else PlatformDeviceContext(tracking_mode=config.tracking_mode)
        )
        self._user_id = user_id if user_id is not None else default_device_id()
        self._clock = clock if clock is not None else _utc_now
        self._transport = (
            transport
            if transport is not None
            else HTTPTransport(config.host, config.app_key, timeout_s=config.timeout_s)
        )
        self._dispatcher = Dispatcher(
            self._transport, flush_interval_s=config.flush_interval
        )
        # Computed once; not refreshed if the process outlives the day.
        self._session_id: str | None = generate_session_id(self._user_id, self._clock())

        # One worker keeps track/flush requests in submission order.
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="aptabase-nomad"
        )
        self._lock = threading.Lock()
        self._flush_future: Future[bool] | None = None
        self._closed = False

        if start:
            self._dispatcher.start()

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def user_id(self) -> uuid.UUID:
        return self._user_id

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def track(self, event_name: str, props: Mapping[str, Any] | None = None) -> None:
        """Record an event. Returns before any network activity happens.

        Property values outside int, float, bool, str and None are dropped
        individually; the event itself is still tracked.
        """
        timestamp = self._clock()
        clean = sanitize_props(props)
        try:
            self._executor.submit(self._enqueue, event_name, clean, timestamp)
        except RuntimeError:
            logger.debug("Client is shut down, dropping event %r", event_name)

    def _enqueue(
        self,
        event_name: str,
        props: dict[str, PropValue],
        timestamp: datetime,
    ) -> None:
        session_id = self._session_id
        if session_id is None:
            logger.warning("Session id unavailable, dropping event %r", event_name)
            return
        self._dispatcher.enqueue(
            EventRecord(
                timestamp=timestamp,
                user_id=self._user_id,
                session_id=session_id,
                event_name=event_name,
                system_props=self._system_props(),
                props=props,
            )
        )

    def _system_props(self) -> SystemProps:
        device = self._device
        return SystemProps(
            is_debug=device.is_debug,
            locale=device.locale,
            os_name=device.os_name,
            os_version=device.os_version,
            app_version=device.app_version,
            app_build_number=device.app_build_number,
            sdk_version=SDK_VERSION,
            device_model=device.device_model,
        )

    def flush(self) -> Future[bool]:
        """Schedule a flush and return immediately.

        The returned future resolves to True when a batch was delivered. While
        a manual flush is still pending, further calls return the same future.
        """
        with self._lock:
            pending = self._flush_future
            if pending is not None and not pending.done():
                return pending
            try:
                future = self._executor.submit(self._dispatcher.flush)
            except RuntimeError:
                logger.debug("Client is shut down, ignoring flush")
                future = Future()
                future.set_result(False)
            self._flush_future = future
            return future

    def shutdown(self, timeout: float = 5.0) -> None:
        """Process queued work, stop the flush loop and make a final flush.

        ``timeout`` bounds each of the two waits: for queued track/flush work
        to drain, and for the flush loop to stop. A transport stuck in
        ``send`` therefore cannot hang the caller indefinitely.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # Runs after every task submitted before close; the pool has one worker.
        drained = self._executor.submit(lambda: None)
        self._executor.shutdown(wait=False)
        done, _ = wait([drained], timeout=timeout)
        if not done:
            logger.warning("Queued work did not finish within %.1fs of shutdown", timeout)
        self._dispatcher.stop(timeout=timeout)
        self._transport.shutdown()

    def __enter__(self) -> Client:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.shutdown()
