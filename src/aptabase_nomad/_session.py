"""Daily session identifiers derived from the device id."""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

# Day boundaries are computed in one fixed zone, not the user's local zone,
# so every device agrees on when a session day starts.
REFERENCE_ZONE = ZoneInfo("America/Chicago")

SESSION_ID_LENGTH = 36


def day_ordinal(now: datetime) -> int:
    """Ordinal of ``now``'s calendar day in the reference zone (0001-01-01 is 1)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(REFERENCE_ZONE).date().toordinal()


def generate_session_id(device_id: uuid.UUID, now: datetime) -> str:
    """Return the session id shared by every event of ``device_id`` on ``now``'s day.

    The id is the SHA-256 of ``"<DEVICE-ID>-<day ordinal>"`` rendered as
    lowercase hex and cut to 36 characters. Naive datetimes are taken as UTC.
    """
    seed = f"{str(device_id).upper()}-{day_ordinal(now)}"
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return digest[:SESSION_ID_LENGTH]
