"""Core types: tracking mode, property values and event records."""

from __future__ import annotations

import enum
import logging
import math
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

logger = logging.getLogger("aptabase_nomad.types")

PropValue = int | float | bool | str | None

_SUPPORTED_TYPES = (int, float, bool, str, type(None))


class TrackingMode(enum.Enum):
    """Build flavour of the host application."""

    DEBUG = "debug"
    RELEASE = "release"

    @property
    def is_debug(self) -> bool:
        return self is TrackingMode.DEBUG

    @property
    def is_release(self) -> bool:
        return self is TrackingMode.RELEASE


@dataclass(frozen=True)
class SystemProps:
    """Immutable device/runtime context attached to every event."""

    is_debug: bool
    locale: str
    os_name: str
    os_version: str
    app_version: str
    app_build_number: str
    sdk_version: str
    device_model: str

    def to_json(self) -> dict[str, Any]:
        return {
            "isDebug": self.is_debug,
            "locale": self.locale,
            "osName": self.os_name,
            "osVersion": self.os_version,
            "appVersion": self.app_version,
            "appBuildNumber": self.app_build_number,
            "sdkVersion": self.sdk_version,
            "deviceModel": self.device_model,
        }


def _frozen_props(props: Mapping[str, PropValue] | None) -> Mapping[str, PropValue]:
    return MappingProxyType(dict(props or {}))


@dataclass(frozen=True)
class EventRecord:
    """Immutable snapshot of one tracked event for queue storage.

    Records compare by value but are unhashable, since ``props`` is a mapping.
    """

    __hash__ = None  # type: ignore[assignment]

    timestamp: datetime
    user_id: uuid.UUID
    session_id: str
    event_name: str
    system_props: SystemProps
    props: Mapping[str, PropValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Private read-only copy so callers can't mutate a queued record.
        object.__setattr__(self, "props", _frozen_props(self.props))

    def to_json(self) -> dict[str, Any]:
        """Return the Aptabase ingestion payload for this event."""
        return {
            "timestamp": _format_timestamp(self.timestamp),
            "userId": str(self.user_id),
            "sessionId": self.session_id,
            "eventName": self.event_name,
            "systemProps": self.system_props.to_json(),
            "props": dict(self.props),
        }


def _format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def sanitize_props(props: Mapping[Any, Any] | None) -> dict[str, PropValue]:
    """Keep only supported property values, dropping the rest one by one."""
    if not props:
        return {}
    clean: dict[str, PropValue] = {}
    for key, value in props.items():
        if not isinstance(key, str):
            logger.warning("Unsupported prop key %r will be ignored", key)
            continue
        if not isinstance(value, _SUPPORTED_TYPES):
            logger.warning(
                "Unsupported prop value for %r (%s) will be ignored",
                key,
                type(value).__name__,
            )
            continue
        if not _is_encodable(value):
            logger.warning("Prop value for %r cannot be sent as JSON and will be ignored", key)
            continue
        clean[key] = value
    return clean


def _is_encodable(value: PropValue) -> bool:
    """False for NaN/infinity and for strings that are not valid UTF-8 text."""
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            return False
    return True
