"""Device context providers and the default device identifier."""

from __future__ import annotations

import locale
import logging
import platform
import re
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from aptabase_nomad._types import TrackingMode

logger = logging.getLogger("aptabase_nomad.device")

_OS_NAMES: dict[str, str] = {
    "Darwin": "macOS",
    "Windows": "Windows",
    "Linux": "Linux",
}

# Namespace for device ids derived from machine ids or the hardware node.
_DEVICE_ID_NAMESPACE = uuid.UUID("4b7e9c52-2d0c-4f4e-9f4a-7a6f1c3d8e21")

_MACHINE_ID_PATHS = ("/etc/machine-id", "/var/lib/dbus/machine-id")
_IOREG_UUID_RE = re.compile(r'"IOPlatformUUID"\s*=\s*"([0-9A-Fa-f-]+)"')

# Set by uuid.getnode() when it fell back to a random address.
_MULTICAST_BIT = 1 << 40


@runtime_checkable
class DeviceContext(Protocol):
    """Structural protocol for per-platform device/runtime lookups."""

    is_debug: bool
    locale: str
    os_name: str
    os_version: str
    app_version: str
    app_build_number: str
    device_model: str


@dataclass(frozen=True)
class StaticDeviceContext:
    """Device context with explicitly supplied values."""

    is_debug: bool = False
    locale: str = ""
    os_name: str = ""
    os_version: str = ""
    app_version: str = ""
    app_build_number: str = ""
    device_model: str = ""


def _sysctl_str(name: str) -> str:
    """Read a sysctl string value."""
    result = subprocess.run(
        ["sysctl", "-n", name],  # noqa: S603, S607
        capture_output=True,
        text=True,
        timeout=5,
    )
    return result.stdout.strip()


def _detect_os_name(system: str) -> str:
    return _OS_NAMES.get(system, system)


def _detect_os_version(system: str) -> str:
    if system == "Darwin":
        mac_version = platform.mac_ver()[0]
        if mac_version:
            return mac_version
    return platform.release()


def _detect_device_model(system: str) -> str:
    # uname reports only the architecture on Macs; hw.model has the model name.
    if system == "Darwin":
        try:
            model = _sysctl_str("hw.model")
        except (OSError, subprocess.SubprocessError):
            logger.debug("sysctl hw.model unavailable", exc_info=True)
            model = ""
        if model:
            return model
    return platform.machine()


def _detect_locale() -> str:
    """Language code of the current locale, e.g. ``en`` for ``en_US``."""
    try:
        language = locale.getlocale()[0]
    except ValueError:
        language = None
    if not language or language in ("C", "POSIX"):
        return ""
    return language.replace("-", "_").split("_")[0]


class PlatformDeviceContext:
    """Device context read once from the running interpreter's platform."""

    def __init__(
        self,
        *,
        app_version: str = "",
        app_build_number: str = "",
        tracking_mode: TrackingMode = TrackingMode.RELEASE,
    ) -> None:
        system = platform.system()
        self.is_debug = tracking_mode.is_debug
        self.locale = _detect_locale()
        self.os_name = _detect_os_name(system)
        self.os_version = _detect_os_version(system)
        self.app_version = app_version
        self.app_build_number = app_build_number
        self.device_model = _detect_device_model(system)

    def __repr__(self) -> str:
        return (
            f"PlatformDeviceContext(os_name={self.os_name!r}, "
            f"os_version={self.os_version!r}, device_model={self.device_model!r})"
        )


def _ioreg_platform_uuid() -> str:
    """Read IOPlatformUUID from the I/O Kit registry."""
    result = subprocess.run(
        ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],  # noqa: S603, S607
        capture_output=True,
        text=True,
        timeout=5,
    )
    match = _IOREG_UUID_RE.search(result.stdout)
    return match.group(1) if match else ""


def _read_machine_id(system: str) -> str:
    """OS-assigned machine identifier, or ``""`` when none can be read."""
    try:
        if system == "Darwin":
            return _ioreg_platform_uuid()
        if system == "Linux":
            for path in _MACHINE_ID_PATHS:
                try:
                    value = Path(path).read_text(encoding="ascii").strip()
                except FileNotFoundError:
                    continue
                if value:
                    return value
    except (OSError, subprocess.SubprocessError, UnicodeDecodeError):
        logger.debug("Machine id unavailable", exc_info=True)
    return ""


def default_device_id() -> uuid.UUID:
    """Stable per-machine identifier.

    Uses the OS machine id (``IOPlatformUUID`` on macOS, ``/etc/machine-id``
    on Linux) and falls back to the hardware node id elsewhere.
    """
    machine_id = _read_machine_id(platform.system())
    if machine_id:
        return uuid.uuid5(_DEVICE_ID_NAMESPACE, machine_id.lower())

    node = uuid.getnode()
    if node & _MULTICAST_BIT:
        # getnode() made up a random address; it changes on every run.
        logger.warning("No hardware id available; device id will not be stable across runs")
    return uuid.uuid5(_DEVICE_ID_NAMESPACE, f"{node:012x}")
