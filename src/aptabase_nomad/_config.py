"""SDK configuration and app-key parsing."""

from __future__ import annotations

from dataclasses import dataclass

from aptabase_nomad._types import TrackingMode

DEBUG_FLUSH_INTERVAL_S = 2.0
RELEASE_FLUSH_INTERVAL_S = 60.0

_REGION_HOSTS: dict[str, str] = {
    "US": "https://us.aptabase.com",
    "EU": "https://eu.aptabase.com",
    "DEV": "http://localhost:3000",
}

_SELF_HOSTED_REGION = "SH"


class AptabaseInitError(ValueError):
    """Raised when the SDK cannot be configured from the given settings."""


class InvalidAppKeyError(AptabaseInitError):
    """App key is not of the form ``A-REGION-XXXXXXXXXX`` or names an unknown region."""


class UnsupportedSelfHostedError(AptabaseInitError):
    """Self-hosted (``A-SH-...``) app keys need an explicit host."""


def host_for_app_key(app_key: str) -> str:
    """Return the default ingestion host for an app key's region."""
    segments = app_key.split("-")
    if len(segments) < 2:
        raise InvalidAppKeyError(f"Invalid app key {app_key!r}")

    region = segments[1]
    if region == _SELF_HOSTED_REGION:
        raise UnsupportedSelfHostedError(
            f"App key {app_key!r} is self-hosted; pass host= explicitly"
        )
    host = _REGION_HOSTS.get(region)
    if host is None:
        raise InvalidAppKeyError(f"Unknown region {region!r} in app key {app_key!r}")
    return host


@dataclass(frozen=True)
class AptabaseConfig:
    """Immutable SDK configuration."""

    app_key: str
    host: str
    flush_interval_s: float | None = None
    tracking_mode: TrackingMode = TrackingMode.RELEASE
    timeout_s: float = 10.0

    @classmethod
    def from_app_key(
        cls,
        app_key: str,
        *,
        tracking_mode: TrackingMode = TrackingMode.RELEASE,
        flush_interval_s: float | None = None,
        timeout_s: float = 10.0,
    ) -> AptabaseConfig:
        """Build a config whose host is derived from the app key region."""
        return cls(
            app_key=app_key,
            host=host_for_app_key(app_key),
            flush_interval_s=flush_interval_s,
            tracking_mode=tracking_mode,
            timeout_s=timeout_s,
        )

    @property
    def flush_interval(self) -> float:
        """Effective flush interval in seconds."""
        if self.flush_interval_s is not None:
            return self.flush_interval_s
        if self.tracking_mode.is_debug:
            return DEBUG_FLUSH_INTERVAL_S
        return RELEASE_FLUSH_INTERVAL_S
