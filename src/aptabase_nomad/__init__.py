"""aptabase-nomad: batching analytics client for Aptabase-compatible servers."""

from __future__ import annotations

from aptabase_nomad._client import SDK_VERSION, Client
from aptabase_nomad._config import (
    AptabaseConfig,
    AptabaseInitError,
    InvalidAppKeyError,
    UnsupportedSelfHostedError,
)
from aptabase_nomad._device import (
    DeviceContext,
    PlatformDeviceContext,
    StaticDeviceContext,
    default_device_id,
)
from aptabase_nomad._dispatcher import Dispatcher
from aptabase_nomad._queue import EventQueue
from aptabase_nomad._session import generate_session_id
from aptabase_nomad._transport import HTTPTransport, Transport
from aptabase_nomad._types import (
    EventRecord,
    PropValue,
    SystemProps,
    TrackingMode,
    sanitize_props,
)

__version__ = "0.1.0"

__all__ = [
    "SDK_VERSION",
    "AptabaseConfig",
    "AptabaseInitError",
    "Client",
    "DeviceContext",
    "Dispatcher",
    "EventQueue",
    "EventRecord",
    "HTTPTransport",
    "InvalidAppKeyError",
    "PlatformDeviceContext",
    "PropValue",
    "StaticDeviceContext",
    "SystemProps",
    "TrackingMode",
    "Transport",
    "UnsupportedSelfHostedError",
    "__version__",
    "default_device_id",
    "generate_session_id",
    "sanitize_props",
]
