"""Tests for device context providers, with platform calls patched."""

from __future__ import annotations

import logging
import subprocess
import uuid
from pathlib import Path

import pytest

from aptabase_nomad import _device
from aptabase_nomad._device import (
    DeviceContext,
    PlatformDeviceContext,
    StaticDeviceContext,
    default_device_id,
)
from aptabase_nomad._types import TrackingMode


def _patch_platform(
    monkeypatch: pytest.MonkeyPatch,
    *,
    system: str,
    release: str = "6.1.0",
    machine: str = "x86_64",
    mac_version: str = "",
) -> None:
    monkeypatch.setattr(_device.platform, "system", lambda: system)
    monkeypatch.setattr(_device.platform, "release", lambda: release)
    monkeypatch.setattr(_device.platform, "machine", lambda: machine)
    monkeypatch.setattr(_device.platform, "mac_ver", lambda: (mac_version, ("", "", ""), ""))


class TestStaticDeviceContext:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(StaticDeviceContext(), DeviceContext)

    def test_values(self) -> None:
        ctx = StaticDeviceContext(os_name="iOS", device_model="iPhone15,2", is_debug=True)
        assert ctx.os_name == "iOS"
        assert ctx.device_model == "iPhone15,2"
        assert ctx.is_debug is True


class TestPlatformDeviceContext:
    def test_linux(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_platform(monkeypatch, system="Linux", release="6.8.0", machine="aarch64")
        ctx = PlatformDeviceContext(app_version="2.0.1", app_build_number="77")
        assert ctx.os_name == "Linux"
        assert ctx.os_version == "6.8.0"
        assert ctx.device_model == "aarch64"
        assert ctx.app_version == "2.0.1"
        assert ctx.app_build_number == "77"
        assert ctx.is_debug is False

    def test_macos_uses_mac_ver_and_hw_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_platform(monkeypatch, system="Darwin", release="23.4.0", mac_version="14.4.1")
        monkeypatch.setattr(_device, "_sysctl_str", lambda name: "Mac14,2")
        ctx = PlatformDeviceContext()
        assert ctx.os_name == "macOS"
        assert ctx.os_version == "14.4.1"
        assert ctx.device_model == "Mac14,2"

    def test_macos_sysctl_failure_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_platform(monkeypatch, system="Darwin", machine="arm64", mac_version="14.4.1")

        def fail(name: str) -> str:
            raise subprocess.TimeoutExpired(cmd="sysctl", timeout=5)

        monkeypatch.setattr(_device, "_sysctl_str", fail)
        assert PlatformDeviceContext().device_model == "arm64"

    def test_unknown_system_passes_through(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_platform(monkeypatch, system="FreeBSD")
        assert PlatformDeviceContext().os_name == "FreeBSD"

    def test_debug_mode(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_platform(monkeypatch, system="Linux")
        ctx = PlatformDeviceContext(tracking_mode=TrackingMode.DEBUG)
        assert ctx.is_debug is True

    def test_satisfies_protocol(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_platform(monkeypatch, system="Linux")
        assert isinstance(PlatformDeviceContext(), DeviceContext)


class TestLocale:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (("en_US", "UTF-8"), "en"),
            (("de_DE", "ISO8859-1"), "de"),
            (("pt-BR", None), "pt"),
            (("C", None), ""),
            ((None, None), ""),
        ],
    )
    def test_language_code(
        self,
        monkeypatch: pytest.MonkeyPatch,
        raw: tuple[str | None, str | None],
        expected: str,
    ) -> None:
        monkeypatch.setattr(_device.locale, "getlocale", lambda: raw)
        assert _device._detect_locale() == expected


class TestDefaultDeviceId:
    def test_is_stable(self) -> None:
        first = default_device_id()
        assert isinstance(first, uuid.UUID)
        assert default_device_id() == first

    def test_uses_machine_id(self, monkeypatch: pytest.MonkeyPatch) -> None:
        machine_id = "0123456789abcdef0123456789abcdef"
        monkeypatch.setattr(_device, "_read_machine_id", lambda system: machine_id)
        monkeypatch.setattr(_device.uuid, "getnode", lambda: 0x0242AC110002)
        a = default_device_id()
        monkeypatch.setattr(_device.uuid, "getnode", lambda: 0x0242AC110003)
        assert default_device_id() == a

    def test_follows_node_without_machine_id(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(_device, "_read_machine_id", lambda system: "")
        monkeypatch.setattr(_device.uuid, "getnode", lambda: 0x0242AC110002)
        a = default_device_id()
        monkeypatch.setattr(_device.uuid, "getnode", lambda: 0x0242AC110003)
        assert default_device_id() != a

    def test_random_node_warns(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setattr(_device, "_read_machine_id", lambda system: "")
        monkeypatch.setattr(_device.uuid, "getnode", lambda: 0x0242AC110002 | (1 << 40))
        with caplog.at_level(logging.WARNING, logger="aptabase_nomad.device"):
            default_device_id()
        assert "not be stable" in caplog.text

    def test_hardware_node_does_not_warn(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setattr(_device, "_read_machine_id", lambda system: "")
        monkeypatch.setattr(_device.uuid, "getnode", lambda: 0x0242AC110002)
        with caplog.at_level(logging.WARNING, logger="aptabase_nomad.device"):
            default_device_id()
        assert caplog.records == []


class TestReadMachineId:
    def test_macos_parses_ioreg(self, monkeypatch: pytest.MonkeyPatch) -> None:
        output = (
            '+-o J314sAP  <class IOPlatformExpertDevice>\n'
            '    "IOPlatformSerialNumber" = "XYZ"\n'
            '    "IOPlatformUUID" = "5A1B2C3D-0000-1111-2222-333344445555"\n'
        )

        def fake_run(*args: object, **kwargs: object) -> subprocess.CompletedProcess[str]:
            return subprocess.CompletedProcess(args=[], returncode=0, stdout=output, stderr="")

        monkeypatch.setattr(_device.subprocess, "run", fake_run)
        assert _device._read_machine_id("Darwin") == "5A1B2C3D-0000-1111-2222-333344445555"

    def test_macos_ioreg_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args: object, **kwargs: object) -> None:
            raise FileNotFoundError("ioreg")

        monkeypatch.setattr(_device.subprocess, "run", fail)
        assert _device._read_machine_id("Darwin") == ""

    def test_linux_reads_first_existing_file(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        dbus_id = tmp_path / "dbus-machine-id"
        dbus_id.write_text("abcdef0123456789abcdef0123456789\n", encoding="ascii")
        monkeypatch.setattr(
            _device, "_MACHINE_ID_PATHS", (str(tmp_path / "missing"), str(dbus_id))
        )
        assert _device._read_machine_id("Linux") == "abcdef0123456789abcdef0123456789"

    def test_linux_no_files(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(_device, "_MACHINE_ID_PATHS", (str(tmp_path / "missing"),))
        assert _device._read_machine_id("Linux") == ""

    def test_other_systems(self) -> None:
        assert _device._read_machine_id("Windows") == ""
