"""Tests for core/gpsbabel.py: command construction and result mapping."""

import subprocess
from unittest.mock import patch

import pytest

from core.devices import Capability
from core.drivers import Format, OperationStatus
from core.gpsbabel import (
    GpsBabelDriver,
    build_command,
    format_to_extension,
    format_to_string,
)

RUN = "core.gpsbabel.subprocess.run"


def _completed(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


def _driver(can_erase=True, can_erase_only=True, port="/dev/ttyUSB0"):
    cap = Capability(can_erase=can_erase, can_erase_only=can_erase_only)
    return GpsBabelDriver("m241", port, cap, model_id="holux", program="gpsbabel")


class TestBuildCommand:
    def test_basic(self):
        cmd = build_command("foo", "ttyS0", erase=False, erase_only=False)
        assert cmd[0] == "gpsbabel"
        assert cmd[1:] == ["-t", "-w", "-i", "foo", "-f", "ttyS0"]

    def test_erase(self):
        cmd = build_command("foo", "ttyS0", erase=True)
        assert cmd[4] == "foo,erase"

    def test_erase_only(self):
        cmd = build_command("foo", "ttyS0", erase_only=True)
        assert cmd[4] == "foo,erase_only"

    def test_port_with_spaces_stays_one_argument(self):
        cmd = build_command("foo", "/dev/my port; rm -rf /")
        assert cmd[-1] == "/dev/my port; rm -rf /"
        assert len(cmd) == 7


class TestFormats:
    def test_gpx(self):
        assert format_to_string(Format.GPX) == "gpx"
        assert format_to_extension(Format.GPX) == ".gpx"

    def test_kml(self):
        assert format_to_string(Format.KML) == "kml"
        assert format_to_extension(Format.KML) == ".kml"

    def test_other(self):
        assert format_to_string(Format.NONE) is None
        assert format_to_extension(Format.NONE) is None

    @pytest.mark.parametrize("name,expected", [
        ("track.gpx", Format.GPX),
        ("TRACK.KML", Format.KML),
        ("track.txt", Format.GPX),
        ("track", Format.GPX),
    ])
    def test_from_path(self, name, expected):
        assert Format.from_path(name) == expected

    def test_from_path_explicit_default(self):
        assert Format.from_path("track.txt", default=Format.KML) == Format.KML
        assert Format.from_path("track.gpx", default=Format.KML) == Format.GPX


class TestOpenClose:
    def test_open_needs_port(self):
        assert _driver().open() is True
        assert _driver(port="").open() is False

    def test_close(self):
        assert _driver().close() is True

    def test_capability_is_copied(self):
        cap = Capability(can_erase=True)
        driver = GpsBabelDriver("mtk", "/dev/ttyUSB0", cap)
        assert driver.capability == cap
        assert driver.capability is not cap


class TestDownload:
    def test_success(self, tmp_path):
        driver = _driver()
        with patch(RUN, side_effect=lambda cmd, **kw: _completed(cmd, stdout="ok")) as run:
            result = driver.download(Format.GPX, False, tmp_path)
        assert result.status == OperationStatus.SUCCESS
        assert result.output_path == tmp_path / "gpsami.gpx"
        cmd = run.call_args[0][0]
        assert cmd == [
            "gpsbabel", "-t", "-w", "-i", "m241", "-f", "/dev/ttyUSB0",
            "-o", "gpx", "-F", str(tmp_path / "gpsami.gpx"),
        ]
        assert "shell" not in run.call_args[1]

    def test_kml_with_erase(self, tmp_path):
        driver = _driver(can_erase=True)
        with patch(RUN, side_effect=lambda cmd, **kw: _completed(cmd)) as run:
            result = driver.download(Format.KML, True, tmp_path)
        assert result.success
        assert result.output_path == tmp_path / "gpsami.kml"
        cmd = run.call_args[0][0]
        assert cmd[4] == "m241,erase"
        assert cmd[-4:-2] == ["-o", "kml"]

    def test_erase_after_unsupported(self, tmp_path):
        driver = _driver(can_erase=False)
        with patch(RUN) as run:
            result = driver.download(Format.GPX, True, tmp_path)
        assert result.status == OperationStatus.UNSUPPORTED
        run.assert_not_called()

    def test_wrong_format(self, tmp_path):
        with patch(RUN) as run:
            result = _driver().download(Format.NONE, False, tmp_path)
        assert result.status == OperationStatus.WRONG_ARG
        run.assert_not_called()

    def test_nonzero_exit(self, tmp_path):
        with patch(RUN, side_effect=lambda cmd, **kw: _completed(cmd, 1, stderr="no device")):
            result = _driver().download(Format.GPX, False, tmp_path)
        assert result.status == OperationStatus.FAILED
        assert result.message == "Failed: no device"
        assert result.output_path is None
        assert not result.is_quiet

    def test_spawn_failure_is_io_error(self, tmp_path):
        err = FileNotFoundError(2, "No such file or directory", "gpsbabel")
        with patch(RUN, side_effect=err):
            result = _driver().download(Format.GPX, False, tmp_path)
        assert result.status == OperationStatus.IO_ERROR
        assert result.error is err


class TestErase:
    def test_success(self):
        with patch(RUN, side_effect=lambda cmd, **kw: _completed(cmd)) as run:
            result = _driver().erase()
        assert result.success
        assert result.output_path is None
        assert run.call_args[0][0] == [
            "gpsbabel", "-t", "-w", "-i", "m241,erase_only", "-f", "/dev/ttyUSB0",
        ]

    def test_unsupported(self):
        with patch(RUN) as run:
            result = _driver(can_erase_only=False).erase()
        assert result.status == OperationStatus.UNSUPPORTED
        run.assert_not_called()

    def test_failed(self):
        with patch(RUN, side_effect=lambda cmd, **kw: _completed(cmd, 3, stderr="timeout\n")):
            result = _driver().erase()
        assert result.status == OperationStatus.FAILED
        assert result.message == "Failed: timeout\n"

    def test_permission_denied(self):
        with patch(RUN, side_effect=PermissionError(13, "Permission denied")):
            result = _driver().erase()
        assert result.status == OperationStatus.IO_ERROR


class TestHoluxScenario:
    def test_erase_permitted_download_with_erase_rejected(self, table, tmp_path):
        cap = table.capability_for("holux")
        driver = GpsBabelDriver("m241", "/dev/ttyUSB0", cap, model_id="holux", program="gpsbabel")
        with patch(RUN, side_effect=lambda cmd, **kw: _completed(cmd)) as run:
            assert driver.erase().success
            assert run.call_count == 1
            result = driver.download(Format.GPX, True, tmp_path)
        assert result.status == OperationStatus.UNSUPPORTED
        assert run.call_count == 1
