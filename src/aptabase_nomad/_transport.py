"""HTTP transport: serializes EventRecord batches to JSON and ships them."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from aptabase_nomad._types import EventRecord

logger = logging.getLogger("aptabase_nomad.transport")

EVENTS_PATH = "/api/v0/events"


@runtime_checkable
class Transport(Protocol):
    """Structural protocol for batch senders used by the Dispatcher."""

    def send(self, batch: Sequence[EventRecord]) -> bool: ...

    def shutdown(self) -> None: ...


def _encode_batch(batch: Sequence[EventRecord]) -> list[bytes]:
    """Encode each event as strict JSON, skipping events that cannot be encoded.

    An event that fails here would fail on every retry, so it is dropped
    instead of being returned to the queue with the rest of the batch.
    """
    encoded: list[bytes] = []
    for event in batch:
        try:
            body = json.dumps(event.to_json(), allow_nan=False, separators=(",", ":"))
            encoded.append(body.encode("utf-8"))
        except (TypeError, ValueError):
            logger.warning("Dropping event %r: not JSON-encodable", event.event_name, exc_info=True)
    return encoded


class HTTPTransport:
    """Posts event batches to an Aptabase-compatible ingestion API.

    ``send`` reports acceptance as a bool and never raises: any 2xx response
    is success, everything else (other status codes, connection errors,
    timeouts) is failure and leaves retrying to the caller. Events that
    cannot be encoded as strict JSON are logged and left out of the request.
    """

    def __init__(
        self,
        host: str,
        app_key: str,
        *,
        timeout_s: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = host.rstrip("/") + EVENTS_PATH
        self._headers = {
            "App-Key": app_key,
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout_s)

    @property
    def url(self) -> str:
        return self._url

    def send(self, batch: Sequence[EventRecord]) -> bool:
        """Send one batch. Returns True when the server accepted it."""
        if not batch:
            return True
        events = _encode_batch(batch)
        if not events:
            return True
        try:
            response = self._client.post(
                self._url, content=b"[" + b",".join(events) + b"]", headers=self._headers
            )
        except httpx.HTTPError as exc:
            logger.warning("Failed to send %d events: %s", len(batch), exc)
            logger.debug("Transport error detail", exc_info=True)
            return False

        if not response.is_success:
            logger.warning(
                "Failed to send %d events: server responded %d",
                len(batch),
                response.status_code,
            )
            return False
        return True

    def shutdown(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            self._client.close()
