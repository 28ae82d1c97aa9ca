"""
Main Window - widget wiring for GPSAmi.

The window is the dispatcher's View: widget events are posted as actions,
and the dispatcher calls back into the window to update it. The dispatcher
queue is drained on the Tk thread with root.after().
"""

import tkinter as tk
from tkinter import ttk, messagebox, filedialog
import queue
from pathlib import Path
from typing import Dict, List, Optional

from config.settings import Settings, CONFIG
from core.devices import Capability, DeviceDescriptor, Port
from core.dispatcher import (
    Dispatcher,
    ModelChanged,
    PortChanged,
    RescanDevices,
    SetOutputDir,
    StartDownload,
    StartErase,
    View,
)
from core.port_discovery import PortMonitor
from utils.logger import AppLogger, LogEntry

from gui.log_panel import LogPanel


class MainWindow(View):
    """
    Main application window.
    """

    def __init__(self, root: tk.Tk, dispatcher: Dispatcher, logger: AppLogger):
        self.root = root
        self.root.title(f"{Settings.APP_NAME} v{Settings.VERSION}")
        self.root.minsize(CONFIG.WINDOW_MIN_WIDTH, CONFIG.WINDOW_MIN_HEIGHT)

        self.dispatcher = dispatcher
        self.logger = logger
        self.monitor = PortMonitor(on_changed=lambda: self.dispatcher.post(RescanDevices()))

        # label -> id maps for the combo boxes
        self._models: Dict[str, str] = {}
        self._ports: Dict[str, str] = {}
        self._capability = Capability()
        self._download_enabled = False
        self._busy = False

        # Log entries may arrive from worker threads
        self.message_queue: "queue.Queue[LogEntry]" = queue.Queue()

        self._create_layout()
        self._setup_callbacks()

        self.dispatcher.set_view(self)
        self.dispatcher.start()
        self.monitor.start()

        self._process_queues()
        self.logger.info(f"{Settings.APP_NAME} started")

    def _create_layout(self):
        """Create main window layout."""
        main_frame = ttk.Frame(self.root, padding="8")
        main_frame.pack(fill=tk.BOTH, expand=True)
        main_frame.columnconfigure(1, weight=1)

        ttk.Label(main_frame, text="Model:").grid(row=0, column=0, sticky="w", pady=2)
        self.model_combo = ttk.Combobox(main_frame, state="readonly")
        self.model_combo.grid(row=0, column=1, columnspan=2, sticky="ew", pady=2)

        ttk.Label(main_frame, text="Port:").grid(row=1, column=0, sticky="w", pady=2)
        self.port_combo = ttk.Combobox(main_frame, state="readonly")
        self.port_combo.grid(row=1, column=1, columnspan=2, sticky="ew", pady=2)

        ttk.Label(main_frame, text="Save to:").grid(row=2, column=0, sticky="w", pady=2)
        self.output_dir_label = ttk.Label(main_frame, text="(none)", foreground="gray")
        self.output_dir_label.grid(row=2, column=1, sticky="ew", pady=2)
        self.output_dir_btn = ttk.Button(main_frame, text="Choose...", command=self._on_choose_output_dir)
        self.output_dir_btn.grid(row=2, column=2, sticky="e", pady=2)

        self.erase_var = tk.BooleanVar(value=False)
        self.erase_checkbtn = ttk.Checkbutton(
            main_frame,
            text="Erase logs after download",
            variable=self.erase_var,
            state=tk.DISABLED
        )
        self.erase_checkbtn.grid(row=3, column=0, columnspan=3, sticky="w", pady=(6, 2))

        btn_frame = ttk.Frame(main_frame)
        btn_frame.grid(row=4, column=0, columnspan=3, sticky="ew", pady=(6, 6))
        self.download_btn = ttk.Button(btn_frame, text="Download", command=self._on_download, state=tk.DISABLED)
        self.download_btn.pack(side=tk.LEFT)
        self.erase_btn = ttk.Button(btn_frame, text="Erase", command=self._on_erase, state=tk.DISABLED)
        self.erase_btn.pack(side=tk.LEFT, padx=5)
        self.status_label = ttk.Label(btn_frame, text="")
        self.status_label.pack(side=tk.RIGHT)

        main_frame.rowconfigure(5, weight=1)
        self.log_panel = LogPanel(main_frame)
        self.log_panel.grid(row=5, column=0, columnspan=3, sticky="nsew")

    def _setup_callbacks(self):
        """Wire widget events to dispatcher actions."""
        self.model_combo.bind("<<ComboboxSelected>>", self._on_model_selected)
        self.port_combo.bind("<<ComboboxSelected>>", self._on_port_selected)
        self.logger.set_gui_callback(self.message_queue.put)
        self.root.protocol("WM_DELETE_WINDOW", self._on_exit)

    def _process_queues(self):
        """Drain log entries and dispatcher actions without blocking the UI."""
        try:
            while True:
                self.log_panel.add_entry(self.message_queue.get_nowait())
        except queue.Empty:
            pass
        self.dispatcher.process_pending(CONFIG.QUEUE_MAX_PER_TICK)
        self.root.after(CONFIG.QUEUE_POLL_MS, self._process_queues)

    # =========================================================================
    # Widget events
    # =========================================================================

    def _on_model_selected(self, _event=None):
        model_id = self._models.get(self.model_combo.get())
        if model_id:
            self.dispatcher.post(ModelChanged(model_id))

    def _on_port_selected(self, _event=None):
        port_id = self._ports.get(self.port_combo.get())
        if port_id:
            self.dispatcher.post(PortChanged(port_id))

    def _on_download(self):
        self.dispatcher.post(StartDownload())

    def _on_erase(self):
        if messagebox.askyesno("Erase", "Erase all track logs on the device?"):
            self.dispatcher.post(StartErase())

    def _on_choose_output_dir(self):
        initial = str(self.dispatcher.output_dir) if self.dispatcher.output_dir else None
        directory = filedialog.askdirectory(title="Output Folder", initialdir=initial)
        if directory:
            self.output_dir_label.config(text=directory, foreground="black")
            self.dispatcher.post(SetOutputDir(Path(directory)))

    def _on_exit(self):
        if self._busy:
            if not messagebox.askyesno("Confirm Exit",
                    "An operation is in progress. Are you sure you want to exit?"):
                return
        self.monitor.stop()
        self.logger.set_gui_callback(None)
        self.root.destroy()

    # =========================================================================
    # View
    # =========================================================================

    def set_models(self, devices: List[DeviceDescriptor]) -> None:
        self._models = {d.label: d.id for d in devices}
        self.model_combo.config(values=list(self._models))
        if self.dispatcher.output_dir:
            self.output_dir_label.config(text=str(self.dispatcher.output_dir), foreground="black")

    def select_model(self, model_id: str) -> None:
        for label, mid in self._models.items():
            if mid == model_id:
                self.model_combo.set(label)
                return

    def set_ports(self, ports: List[Port]) -> None:
        self._ports = {str(p): p.id for p in ports}
        self.port_combo.config(values=list(self._ports))
        self.port_combo.set("")

    def select_port(self, port_id: str) -> None:
        for label, pid in self._ports.items():
            if pid == port_id:
                self.port_combo.set(label)
                return

    def update_capability(self, capability: Capability) -> None:
        self._capability = capability
        if not capability.can_erase:
            self.erase_var.set(False)
        self._refresh_sensitivity()

    def set_download_enabled(self, enabled: bool) -> None:
        self._download_enabled = enabled
        self._refresh_sensitivity()

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self.status_label.config(text="Working..." if busy else "")
        self._refresh_sensitivity()

    def _refresh_sensitivity(self):
        def state(enabled: bool) -> str:
            return tk.NORMAL if enabled and not self._busy else tk.DISABLED

        self.download_btn.config(state=state(self._download_enabled))
        self.erase_btn.config(state=state(self._capability.can_erase_only and self._download_enabled))
        self.erase_checkbtn.config(state=state(self._capability.can_erase))
        combo_state = "readonly" if not self._busy else tk.DISABLED
        self.model_combo.config(state=combo_state)
        self.port_combo.config(state=combo_state)
        self.output_dir_btn.config(state=state(True))

    def ask_output_file(self, initial_dir: Optional[Path]) -> Optional[Path]:
        filepath = filedialog.asksaveasfilename(
            title="Save File",
            initialdir=str(initial_dir) if initial_dir else None,
            defaultextension=".gpx",
            filetypes=[
                ("GPX files", "*.gpx"),
                ("KML files", "*.kml"),
            ]
        )
        return Path(filepath) if filepath else None

    def erase_after_download(self) -> bool:
        return bool(self.erase_var.get())

    def notify(self, message: str) -> None:
        self.status_label.config(text=message)

    def report_error(self, headline: str, detail: str) -> None:
        messagebox.showerror("Error", f"{headline}\n\n{detail}")
