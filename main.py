#!/usr/bin/env python3
"""
GPSAmi - Main Entry Point

Download or erase the track logs of a GPS logger through gpsbabel.

This script:
1. Sets up logging
2. Loads the device table and settings
3. Starts the GUI, or runs a single headless command

Usage:
    python main.py
    python main.py --list-models
    python main.py --list-ports holux
    python main.py --model holux --port /dev/ttyUSB0 --download track.gpx
    python main.py --model holux --port /dev/ttyUSB0 --erase
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional


def check_dependencies():
    """Check that all required dependencies are available."""
    missing = []

    try:
        import serial
    except ImportError:
        missing.append("pyserial")

    return missing


def setup_environment(debug: bool = False):
    """Set up logging and the settings directory."""
    from config.settings import CONFIG
    from utils.logger import get_logger

    Path(CONFIG.SETTINGS_DIR).mkdir(parents=True, exist_ok=True)
    logger = get_logger()
    logger.set_file_log(Path(CONFIG.LOG_FILE_PATH))
    if debug:
        logger.set_console_level(logging.DEBUG)
    return logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Download or erase GPS logger track logs using gpsbabel.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")
    parser.add_argument("--gpsbabel", metavar="PATH", help="gpsbabel executable to use")
    parser.add_argument("--list-models", action="store_true", help="List supported models and exit")
    parser.add_argument("--list-ports", metavar="MODEL", help="List candidate ports for MODEL and exit")
    parser.add_argument("--model", help="Model id (headless mode)")
    parser.add_argument("--port", help="Port path (headless mode)")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--download", metavar="FILE", help="Download logs to FILE (.gpx or .kml)")
    action.add_argument("--erase", action="store_true", help="Erase logs on the device")
    parser.add_argument("--erase-after", action="store_true", help="Erase logs after downloading")
    return parser.parse_args(argv)


def run_headless(args, manager) -> int:
    """Run one download or erase through the dispatcher and wait for it."""
    from core.dispatcher import (
        Dispatcher, ModelChanged, PortChanged, StartDownload, StartErase, View,
    )
    from utils.persistence import SettingsStore

    class ConsoleView(View):
        def __init__(self):
            self.exit_code = 0

        def ask_output_file(self, initial_dir: Optional[Path]) -> Optional[Path]:
            return Path(args.download) if args.download else None

        def erase_after_download(self) -> bool:
            return args.erase_after

        def notify(self, message: str) -> None:
            print(message)

        def report_error(self, headline: str, detail: str) -> None:
            print(f"{headline}\n{detail}", file=sys.stderr)
            self.exit_code = 1

    view = ConsoleView()
    # Headless runs do not overwrite the GUI's remembered selection
    settings = SettingsStore(read_only=True)
    dispatcher = Dispatcher(manager, settings, view)
    dispatcher.post(ModelChanged(args.model))
    dispatcher.post(PortChanged(args.port))
    dispatcher.post(StartErase() if args.erase else StartDownload())
    dispatcher.run_until_idle()
    return view.exit_code


def main(argv=None):
    """Main entry point."""
    missing = check_dependencies()
    if missing:
        print("ERROR: Missing required dependencies:")
        for dep in missing:
            print(f"  - {dep}")
        print("\nInstall them with:")
        print(f"  pip install {' '.join(missing)}")
        sys.exit(1)

    args = parse_args(argv)

    try:
        logger = setup_environment(args.debug)
    except OSError as e:
        print(f"ERROR: Failed to set up environment: {e}")
        sys.exit(1)

    from config.settings import CONFIG
    from core.devices import DescriptorError
    from core.manager import DeviceManager

    if args.gpsbabel:
        CONFIG.GPSBABEL_PATH = args.gpsbabel

    try:
        manager = DeviceManager()
    except DescriptorError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if args.list_models:
        for desc in manager.devices():
            print(f"{desc.id:<12} {desc.label}")
        return 0

    if args.list_ports:
        for port in manager.ports_for_model(args.list_ports):
            print(f"{port.path}\t{port.label}")
        return 0

    if args.download or args.erase:
        if not args.model or not args.port:
            print("ERROR: --model and --port are required with --download/--erase")
            sys.exit(2)
        sys.exit(run_headless(args, manager))

    return run_gui(manager, logger)


def run_gui(manager, logger) -> int:
    """Create the Tk window and run the main loop."""
    import tkinter as tk
    from tkinter import messagebox

    from core.dispatcher import Dispatcher
    from gui.main_window import MainWindow
    from utils.persistence import SettingsStore

    settings = SettingsStore()
    if not settings.load():
        logger.debug("Settings", "Starting from default settings")

    root = tk.Tk()
    try:
        MainWindow(root, Dispatcher(manager, settings), logger)
    except Exception as e:
        messagebox.showerror("Startup Error",
            f"Failed to initialize application:\n\n{str(e)}")
        sys.exit(1)

    try:
        root.mainloop()
    except KeyboardInterrupt:
        print("\nShutting down...")

    return 0


if __name__ == "__main__":
    sys.exit(main())
