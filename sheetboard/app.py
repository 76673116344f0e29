"""
Sheetboard Main Application

File Purpose: Command-line entry point and the live terminal kiosk loop
Primary Functions/Classes: main, run_kiosk, run_once, parse_args
Inputs and Outputs (I/O): CLI arguments, settings file, raw keyboard input, rich live screen, log file

Controls (live mode):
  F2      : edit the displayed lines
  F4      : save the edit (stops automatic refresh for this run)
  Escape  : discard the edit
  q       : quit (display mode only)
"""

import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import List, Optional

from rich.live import Live

from . import __version__
from .controller import KioskController
from .exceptions import SettingsError, handle_error
from .models import KioskSettings, RenderState, console
from .settings import SettingsManager
from .terminal import FOCUS_IN, FOCUS_OUT, RawTerminal, decode_keys, viewport_pixels
from .ui import KioskRenderer

logger = logging.getLogger(__name__)

SHEETBOARD_DIR = Path.home() / ".sheetboard"
DEFAULT_SETTINGS_FILE = SHEETBOARD_DIR / "settings.json"
DEFAULT_LOG_FILE = SHEETBOARD_DIR / "sheetboard.log"
QUIT_KEYS = {"q", "Q"}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sheetboard",
        description="Show the first column of a spreadsheet tab full-screen, refreshed every few seconds.",
    )
    parser.add_argument("--sheet-id", help="Spreadsheet document id")
    parser.add_argument("--gid", help="Sheet/tab id inside the document")
    parser.add_argument("--interval", type=float, help="Refresh interval in seconds")
    parser.add_argument(
        "--settings",
        type=Path,
        default=DEFAULT_SETTINGS_FILE,
        help=f"Settings JSON file (default: {DEFAULT_SETTINGS_FILE})",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=DEFAULT_LOG_FILE,
        help=f"Log file (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--once", action="store_true", help="Fetch once, print the lines and exit")
    parser.add_argument("--show-settings", action="store_true", help="Print effective settings and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def configure_logging(log_file: Path, debug: bool = False) -> None:
    """Send log records to a file; the live view owns the terminal."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        filename=str(log_file),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_settings(args: argparse.Namespace) -> SettingsManager:
    manager = SettingsManager(args.settings)
    overrides = {
        "sheet_id": args.sheet_id,
        "gid": args.gid,
        "refresh_interval": args.interval,
    }
    for key, value in overrides.items():
        if value is not None:
            manager.update_setting(key, value)
    return manager


async def run_kiosk(settings: KioskSettings) -> int:
    """Run the live kiosk until the operator quits."""
    loop = asyncio.get_running_loop()
    renderer = KioskRenderer(
        cell_height_px=settings.cell_height_px,
        commit_key=settings.commit_key,
        cancel_key=settings.cancel_key,
    )

    def measure():
        return viewport_pixels(console, settings.cell_width_px, settings.cell_height_px)

    stop = asyncio.Event()

    with RawTerminal() as term, Live(
        console=console, screen=True, auto_refresh=False, transient=True
    ) as live:

        def on_render(state: RenderState) -> None:
            live.update(renderer.render(state), refresh=True)

        controller = KioskController(
            settings,
            on_render=on_render,
            measure=measure,
            viewport=measure(),
        )

        def on_input() -> None:
            for key in decode_keys(term.read_available()):
                if key == FOCUS_IN:
                    controller.handle_focus()
                elif key == FOCUS_OUT:
                    controller.handle_blur()
                elif not controller.handle_key(key) and key in QUIT_KEYS:
                    stop.set()

        loop.add_reader(term.fd, on_input)
        loop.add_signal_handler(signal.SIGWINCH, controller.notify_resize)
        controller.start()
        logger.info("Kiosk started for %s", controller.fetcher.source_url)
        try:
            await stop.wait()
        finally:
            loop.remove_signal_handler(signal.SIGWINCH)
            loop.remove_reader(term.fd)
            controller.shutdown()
    return 0


async def run_once(settings: KioskSettings) -> int:
    """Fetch once and print the display lines with their fitted font size."""
    controller = KioskController(
        settings,
        viewport=viewport_pixels(console, settings.cell_width_px, settings.cell_height_px),
    )
    with console.status("Fetching sheet..."):
        await controller.refresh()

    if controller.acquisition.last_error:
        console.print(f"[red]{controller.acquisition.last_error}[/]")
        last = controller.fetcher.last_error
        if last is not None:
            console.print(f"[dim]   Last error: {last}[/]")
        return 1

    state = controller.render_state()
    for line in state.lines:
        console.print(line, markup=False, highlight=False)
    console.print(
        f"[dim]{len(state.lines)} lines, font size {state.font_size} "
        f"via {controller.fetcher.last_strategy}[/]"
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_file, debug=args.debug)

    try:
        manager = build_settings(args)
    except SettingsError as e:
        handle_error(console, e, "Loading settings", show_details=True)
        return 2

    if args.show_settings:
        console.print(manager.settings_table())
        return 0

    try:
        if args.once:
            return asyncio.run(run_once(manager.settings))
        return asyncio.run(run_kiosk(manager.settings))
    except KeyboardInterrupt:
        console.print("\nShutting down Sheetboard...")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
