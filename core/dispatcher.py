"""
Action dispatcher.

Single-threaded coordinator for the application. User actions, hotplug
events and worker completions are posted as actions on one queue and
applied in arrival order by whichever thread drains it (the Tk thread in
the GUI, the main thread when headless). Blocking gpsbabel calls run on
short-lived worker threads that report back with exactly one Done action.
"""
import queue
import shutil
import tempfile
import threading
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, List, Optional, Union

from core.devices import Capability, DeviceDescriptor, Port
from core.drivers import Driver, Format, OperationResult
from core.manager import DeviceManager
from utils.logger import get_logger
from utils.persistence import SettingsStore


class UiState(Enum):
    """Whether a device operation is running."""
    IDLE = auto()
    IN_PROGRESS = auto()


@dataclass(frozen=True)
class RescanDevices:
    pass


@dataclass(frozen=True)
class ModelChanged:
    model_id: str


@dataclass(frozen=True)
class PortChanged:
    port_id: str


@dataclass(frozen=True)
class StartErase:
    pass


@dataclass(frozen=True)
class DoneErase:
    result: OperationResult


@dataclass(frozen=True)
class StartDownload:
    pass


@dataclass(frozen=True)
class DoneDownload:
    result: OperationResult


@dataclass(frozen=True)
class SetOutputDir:
    path: Path


@dataclass(frozen=True)
class Shutdown:
    """Stops run_forever()."""


Action = Union[
    RescanDevices, ModelChanged, PortChanged, StartErase, DoneErase,
    StartDownload, DoneDownload, SetOutputDir, Shutdown,
]

# User visible texts
DOWNLOAD_FINISHED = "Download finished."
DOWNLOAD_CANCELLED = "Download cancelled."
DOWNLOAD_ERROR = "Error downloading GPS data."
ERASE_FINISHED = "Erase finished."
ERASE_CANCELLED = "Erase cancelled."
ERASE_ERROR = "Error erasing GPS data."
OPEN_FAILED = "Open failed."


class View:
    """
    Presentation collaborator of the dispatcher.

    Every method is called on the coordinator thread. The default
    implementation does nothing, which is what headless use wants.
    """

    def set_models(self, devices: List[DeviceDescriptor]) -> None:
        pass

    def select_model(self, model_id: str) -> None:
        pass

    def set_ports(self, ports: List[Port]) -> None:
        pass

    def select_port(self, port_id: str) -> None:
        pass

    def update_capability(self, capability: Capability) -> None:
        """Erase-after-download toggle follows can_erase, erase trigger can_erase_only."""

    def set_download_enabled(self, enabled: bool) -> None:
        pass

    def set_busy(self, busy: bool) -> None:
        pass

    def ask_output_file(self, initial_dir: Optional[Path]) -> Optional[Path]:
        """Ask for the download destination. None means cancelled."""
        return None

    def erase_after_download(self) -> bool:
        return False

    def notify(self, message: str) -> None:
        pass

    def report_error(self, headline: str, detail: str) -> None:
        pass


class Dispatcher:
    """
    Coordinator owning the application state.

    post() may be called from any thread; everything else must run on the
    thread that drains the queue.
    """

    def __init__(
        self,
        manager: DeviceManager,
        settings: SettingsStore,
        view: Optional[View] = None
    ):
        self._logger = get_logger()
        self._manager = manager
        self._settings = settings
        self._view = view or View()
        self._queue: "queue.Queue[Action]" = queue.Queue()
        self._workers: List[threading.Thread] = []
        self._draining = False

        self.state = UiState.IDLE
        self.output_dir: Optional[Path] = None

    @property
    def manager(self) -> DeviceManager:
        return self._manager

    def set_view(self, view: View) -> None:
        self._view = view

    def start(self) -> None:
        """Restore the output directory and request the first scan."""
        output_dir = self._settings.get_string("output", "dir")
        if output_dir:
            self.output_dir = Path(output_dir)
        self.post(RescanDevices())

    # =========================================================================
    # Queue
    # =========================================================================

    def post(self, action: Action) -> None:
        """Queue an action for the coordinator. Thread safe."""
        self._queue.put(action)

    def process_pending(self, max_items: Optional[int] = None) -> int:
        """
        Apply queued actions without blocking. Returns how many ran.

        Nested calls (a modal dialog's event loop firing the GUI timer while
        an action is being applied) run nothing, so every action completes
        before the next one starts.
        """
        if self._draining:
            return 0
        self._draining = True
        processed = 0
        try:
            while max_items is None or processed < max_items:
                try:
                    action = self._queue.get_nowait()
                except queue.Empty:
                    break
                if isinstance(action, Shutdown):
                    break
                self.process_event(action)
                processed += 1
        finally:
            self._draining = False
        return processed

    def run_forever(self) -> None:
        """Apply actions until Shutdown is posted."""
        while True:
            action = self._queue.get()
            if isinstance(action, Shutdown):
                return
            self.process_event(action)

    def run_until_idle(self, poll: float = 0.1) -> None:
        """Apply actions until the queue is empty, the state is IDLE and no worker runs."""
        while True:
            try:
                action = self._queue.get(timeout=poll)
            except queue.Empty:
                if self.state == UiState.IDLE and not self.has_running_workers():
                    return
                continue
            if isinstance(action, Shutdown):
                return
            self.process_event(action)

    def has_running_workers(self) -> bool:
        self._workers = [t for t in self._workers if t.is_alive()]
        return bool(self._workers)

    def wait_for_workers(self, timeout: Optional[float] = None) -> None:
        for worker in list(self._workers):
            worker.join(timeout)

    # =========================================================================
    # Event processing
    # =========================================================================

    def process_event(self, action: Action) -> None:
        self._logger.debug("Dispatcher", f"Processing {action}")
        if isinstance(action, RescanDevices):
            self._rescan_devices()
        elif isinstance(action, ModelChanged):
            self._model_changed(action.model_id)
        elif isinstance(action, PortChanged):
            self._port_changed(action.port_id)
        elif isinstance(action, StartErase):
            self._warn_if_busy()
            self._set_state(UiState.IN_PROGRESS)
            self._do_erase()
        elif isinstance(action, DoneErase):
            self._report(action.result, ERASE_FINISHED, ERASE_CANCELLED, ERASE_ERROR)
            self._set_state(UiState.IDLE)
        elif isinstance(action, StartDownload):
            self._warn_if_busy()
            self._set_state(UiState.IN_PROGRESS)
            self._do_download()
        elif isinstance(action, DoneDownload):
            self._report(action.result, DOWNLOAD_FINISHED, DOWNLOAD_CANCELLED, DOWNLOAD_ERROR)
            self._set_state(UiState.IDLE)
        elif isinstance(action, SetOutputDir):
            self._set_output_dir(action.path)
        else:
            self._logger.warning("Dispatcher", f"Ignoring unknown action {action!r}")

    def _set_state(self, state: UiState) -> None:
        self.state = state
        self._view.set_busy(state == UiState.IN_PROGRESS)

    def _warn_if_busy(self) -> None:
        # The view disables its triggers while busy; a second start still runs.
        if self.state == UiState.IN_PROGRESS:
            self._logger.warning("Dispatcher", "Starting an operation while another is in progress")

    def _save_settings(self) -> None:
        if not self._settings.save():
            self._logger.error("Dispatcher", "Error saving settings")

    def _rescan_devices(self) -> None:
        """Repopulate models and reselect the current or stored one."""
        self._view.set_models(self._manager.devices())
        model = self._manager.model or self._settings.get_string("device", "model")
        if model:
            self._view.select_model(model)
            self.post(ModelChanged(model))

    def _model_changed(self, model_id: str) -> None:
        self._logger.debug("Dispatcher", f"Model changed to {model_id}")
        self._settings.set_string("device", "model", model_id)
        self._save_settings()

        capability = self._manager.capability_for_known(model_id)
        if capability is None:
            self._manager.clear_selection()
            self._view.update_capability(Capability())
            self._view.set_ports([])
            self._view.set_download_enabled(False)
            return

        self._view.update_capability(capability)
        self._manager.set_model(model_id)
        ports = self._manager.ports_for_model(model_id)
        for port in ports:
            self._logger.debug("Dispatcher", f"Adding port {port}")
        self._view.set_ports(ports)

        wanted = self._manager.port or self._settings.get_string("device", "port")
        if wanted and any(p.id == wanted for p in ports):
            self.post(PortChanged(wanted))
        else:
            self._manager.port = None
            self._view.set_download_enabled(False)

    def _port_changed(self, port_id: str) -> None:
        self._settings.set_string("device", "port", port_id)
        self._save_settings()
        self._manager.set_port(port_id)
        self._view.select_port(port_id)
        self._view.set_download_enabled(bool(port_id))

    def _set_output_dir(self, path: Path) -> None:
        self.output_dir = Path(path)
        self._settings.set_string("output", "dir", str(self.output_dir))
        self._save_settings()

    def _report(
        self,
        result: OperationResult,
        finished: str,
        cancelled: str,
        headline: str
    ) -> None:
        if result.success:
            self._logger.success("Dispatcher", finished)
            self._view.notify(finished)
        elif result.is_quiet:
            self._logger.info("Dispatcher", cancelled)
            self._view.notify(cancelled)
        else:
            self._logger.error("Dispatcher", f"{headline} {result.message}")
            self._view.report_error(headline, result.message)

    # =========================================================================
    # Device operations
    # =========================================================================

    def _spawn(self, name: str, target: Callable[[], None]) -> threading.Thread:
        worker = threading.Thread(target=target, name=name, daemon=True)
        self._workers.append(worker)
        worker.start()
        return worker

    def _do_download(self) -> None:
        device = self._manager.get_device()
        if device is None:
            self._logger.debug("Dispatcher", "No driver")
            self.post(DoneDownload(OperationResult.no_driver()))
            return

        output_file = self._view.ask_output_file(self.output_dir)
        if output_file is None:
            self.post(DoneDownload(OperationResult.cancelled()))
            return

        erase = self._view.erase_after_download()
        fmt = Format.from_path(output_file)
        self._spawn(
            "downloader",
            lambda: self.post(DoneDownload(self._download(device, fmt, erase, Path(output_file))))
        )

    def _do_erase(self) -> None:
        device = self._manager.get_device()
        if device is None:
            self._logger.error("Dispatcher", "No driver")
            self.post(DoneErase(OperationResult.no_driver()))
            return
        self._spawn("eraser", lambda: self.post(DoneErase(self._erase(device))))

    def _download(self, device: Driver, fmt: Format, erase: bool, output_file: Path) -> OperationResult:
        """Worker body: download into a scratch directory, then copy out."""
        try:
            if not device.open():
                return OperationResult.failed(OPEN_FAILED)
            try:
                with tempfile.TemporaryDirectory(prefix="gpsami-") as tempdir:
                    result = device.download(fmt, erase, Path(tempdir))
                    if not result.success:
                        return result
                    self._logger.debug(
                        "Dispatcher",
                        f"Success {result.output_path} -> will copy to {output_file}"
                    )
                    shutil.copyfile(result.output_path, output_file)
                    return OperationResult.ok(output_file)
            finally:
                device.close()
        except OSError as e:
            return OperationResult.io_error(e)
        except Exception as e:
            self._logger.error("Dispatcher", f"Download crashed: {e}")
            return OperationResult.failed(str(e))

    def _erase(self, device: Driver) -> OperationResult:
        """Worker body for erase."""
        try:
            if not device.open():
                return OperationResult.failed(OPEN_FAILED)
            try:
                result = device.erase()
            finally:
                device.close()
            if result.success:
                self._logger.debug("Dispatcher", "Success erasing")
            return result
        except OSError as e:
            return OperationResult.io_error(e)
        except Exception as e:
            self._logger.error("Dispatcher", f"Erase crashed: {e}")
            return OperationResult.failed(str(e))
