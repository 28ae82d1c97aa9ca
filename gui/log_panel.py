"""
Log panel for GPSAmi GUI.

Displays real-time log messages.
"""
import tkinter as tk
from tkinter import ttk, filedialog, messagebox

from config.settings import CONFIG
from utils.logger import LogEntry


class LogPanel(ttk.LabelFrame):
    """
    Panel displaying log messages with color-coded levels.
    """

    def __init__(self, parent: tk.Widget):
        super().__init__(parent, text="Log", padding=5)

        self._create_widgets()

    def _create_widgets(self) -> None:
        """Create panel widgets."""
        log_frame = ttk.Frame(self)
        log_frame.pack(fill=tk.BOTH, expand=True)

        self._log_text = tk.Text(
            log_frame,
            wrap=tk.WORD,
            font=("Courier", 9),
            state=tk.DISABLED,
            height=8
        )

        scrollbar = ttk.Scrollbar(
            log_frame,
            orient=tk.VERTICAL,
            command=self._log_text.yview
        )
        self._log_text.configure(yscrollcommand=scrollbar.set)

        self._log_text.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)

        self._log_text.tag_configure("DEBUG", foreground="gray")
        self._log_text.tag_configure("INFO", foreground="black")
        self._log_text.tag_configure("WARNING", foreground="orange")
        self._log_text.tag_configure("ERROR", foreground="red")
        self._log_text.tag_configure("SUCCESS", foreground="green")
        self._log_text.tag_configure("timestamp", foreground="gray")
        self._log_text.tag_configure("source", foreground="blue")

        btn_frame = ttk.Frame(self)
        btn_frame.pack(fill=tk.X, pady=(5, 0))

        ttk.Button(btn_frame, text="Clear Log", command=self.clear).pack(side=tk.LEFT)
        ttk.Button(btn_frame, text="Save Log...", command=self._save_log).pack(side=tk.LEFT, padx=5)

    def add_entry(self, entry: LogEntry) -> None:
        """Append a log entry."""
        self._log_text.config(state=tk.NORMAL)

        ts = entry.timestamp.strftime("%H:%M:%S.%f")[:-3]
        self._log_text.insert(tk.END, f"[{ts}] ", "timestamp")
        self._log_text.insert(tk.END, f"[{entry.source}] ", "source")
        self._log_text.insert(tk.END, f"{entry.message}\n", entry.level)

        # Limit lines
        line_count = int(self._log_text.index('end-1c').split('.')[0])
        if line_count > CONFIG.LOG_MAX_LINES:
            self._log_text.delete('1.0', f'{line_count - CONFIG.LOG_MAX_LINES}.0')

        self._log_text.config(state=tk.DISABLED)
        self._log_text.see(tk.END)

    def clear(self) -> None:
        """Clear all log entries."""
        self._log_text.config(state=tk.NORMAL)
        self._log_text.delete('1.0', tk.END)
        self._log_text.config(state=tk.DISABLED)

    def _save_log(self) -> None:
        """Save log contents to file."""
        filepath = filedialog.asksaveasfilename(
            title="Save Log",
            defaultextension=".log",
            filetypes=[
                ("Log files", "*.log"),
                ("Text files", "*.txt"),
                ("All files", "*.*")
            ]
        )

        if filepath:
            content = self._log_text.get('1.0', tk.END)
            try:
                with open(filepath, 'w', encoding='utf-8') as f:
                    f.write(content)
            except OSError as e:
                messagebox.showerror("Error", f"Failed to save log: {e}")
