"""
GPS logger driver using gpsbabel.

Each download or erase runs one gpsbabel process to completion:

    gpsbabel -t -w -i m241 -f /dev/ttyUSB0 -o gpx -F /tmp/xyz/gpsami.gpx
    gpsbabel -t -w -i m241,erase_only -f /dev/ttyUSB0
"""
import subprocess
from pathlib import Path
from typing import List, Optional

from config.settings import CONFIG, Settings
from core.devices import Capability
from core.drivers import Driver, Format, OperationResult
from utils.logger import get_logger

_FORMAT_CODES = {
    Format.GPX: "gpx",
    Format.KML: "kml",
}

_FORMAT_EXTENSIONS = {
    Format.GPX: ".gpx",
    Format.KML: ".kml",
}


def format_to_string(fmt: Format) -> Optional[str]:
    """gpsbabel output format code, or None if unsupported."""
    return _FORMAT_CODES.get(fmt)


def format_to_extension(fmt: Format) -> Optional[str]:
    """File extension (with the dot), or None if unsupported."""
    return _FORMAT_EXTENSIONS.get(fmt)


def build_command(
    device_id: str,
    port: str,
    erase: bool = False,
    erase_only: bool = False,
    program: str = Settings.GPSBABEL_PATH
) -> List[str]:
    """
    Build the basic gpsbabel command line for the device on port.

    erase and erase_only are exclusive; erase means download then erase.
    Arguments are passed as a list, never through a shell.
    """
    device_spec = device_id
    if erase:
        device_spec += ",erase"
    elif erase_only:
        device_spec += ",erase_only"
    return [program, "-t", "-w", "-i", device_spec, "-f", port]


class GpsBabelDriver(Driver):
    """
    Driver backed by the gpsbabel command line tool.

    Holds a copy of the capability so later table changes are not observed.
    """

    def __init__(
        self,
        device_id: str,
        port: str,
        capability: Capability,
        model_id: Optional[str] = None,
        program: Optional[str] = None
    ):
        """
        Args:
            device_id: gpsbabel input format (the driver id)
            port: Device node the logger is attached to
            capability: Capability of the model
            model_id: Model the driver was built for (for logs)
            program: gpsbabel executable. Uses configured path if not provided.
        """
        self._logger = get_logger()
        self.device_id = device_id
        self.port = port
        self.capability = capability.copy()
        self.model_id = model_id or device_id
        self.program = program or CONFIG.get_gpsbabel_path()

    def __repr__(self) -> str:
        return f"GpsBabelDriver({self.model_id!r}, {self.device_id!r}, {self.port!r})"

    def open(self) -> bool:
        return bool(self.port)

    def close(self) -> bool:
        return True

    def _run(self, cmd: List[str]) -> OperationResult:
        """Run gpsbabel and map the exit status."""
        self._logger.info("GpsBabel", f"Command: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace"
            )
        except OSError as e:
            self._logger.error("GpsBabel", f"Cannot run {cmd[0]}: {e}")
            return OperationResult.io_error(e)

        self._logger.debug("GpsBabel", f"Exit code: {result.returncode}")
        self._logger.debug("GpsBabel", f"stdout: {result.stdout}")
        if result.returncode != 0:
            self._logger.error("GpsBabel", f"{result.returncode}: {result.stderr}")
            return OperationResult.failed(result.stderr)
        return OperationResult.ok()

    def download(self, fmt: Format, erase_after: bool, tempdir: Path) -> OperationResult:
        """
        Download the logs into a file in tempdir.

        The file is owned by tempdir; the caller copies it out before
        tempdir is cleaned up.
        """
        if erase_after and not self.capability.can_erase:
            return OperationResult.unsupported()

        fmt_code = format_to_string(fmt)
        extension = format_to_extension(fmt)
        if fmt_code is None or extension is None:
            return OperationResult.wrong_arg()

        outfile = Path(tempdir) / (CONFIG.OUTPUT_BASENAME + extension)
        cmd = build_command(self.device_id, self.port, erase=erase_after, program=self.program)
        cmd += ["-o", fmt_code, "-F", str(outfile)]

        result = self._run(cmd)
        if result.success:
            result.output_path = outfile
        return result

    def erase(self) -> OperationResult:
        """Erase the logs on the device without downloading."""
        if not self.capability.can_erase_only:
            return OperationResult.unsupported()

        cmd = build_command(self.device_id, self.port, erase_only=True, program=self.program)
        return self._run(cmd)
