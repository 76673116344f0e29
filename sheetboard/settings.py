"""
Sheetboard Settings Management

File Purpose: Kiosk settings persistence, environment overrides and validation
Primary Functions/Classes: SettingsManager
Inputs and Outputs (I/O): Settings file I/O, environment variables, rich settings table

Settings are layered: dataclass defaults, then the JSON settings file (known
keys only), then ``SHEETBOARD_*`` environment variables (a ``.env`` file is
loaded first), then whatever the command line passes to ``update_setting``.
"""

import json
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv
from rich.table import Table

from .exceptions import SettingsError
from .models import KioskSettings, console

ENV_PREFIX = "SHEETBOARD_"

FLOAT_KEYS = {
    "refresh_interval": 1.0,
    "request_timeout": 1.0,
    "guard_window": 0.0,
    "focus_delay": 0.0,
    "settle_delay": 0.0,
}
INT_KEYS = {"cell_width_px": 1, "cell_height_px": 1}
BOOL_KEYS = {"trust_direct"}
TRUTHY = ("on", "true", "yes", "y", "1")


class SettingsManager:
    """Manages kiosk settings and their sources."""

    def __init__(
        self,
        settings_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ):
        self.settings_file = settings_file
        if load_env_file and environ is None:
            load_dotenv()
        self._environ = os.environ if environ is None else environ
        self.settings = self._load_settings()

    def _load_settings(self) -> KioskSettings:
        """Load settings from file and environment, falling back to defaults."""
        self.settings = KioskSettings()
        data = {}
        try:
            if self.settings_file and self.settings_file.exists():
                with open(self.settings_file, "r") as f:
                    data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            console.print(f"[yellow]Warning: ignoring unreadable settings file: {e}[/yellow]")
            data = {}
        if not isinstance(data, dict):
            console.print("[yellow]Warning: ignoring settings file that is not a JSON object[/yellow]")
            data = {}

        # File values go through the same validation as every other source
        for k, v in data.items():
            if not hasattr(self.settings, k):
                continue
            try:
                self.update_setting(k, v)
            except SettingsError as e:
                console.print(f"[yellow]Warning: {e.message} in settings file; using default[/yellow]")

        for f in fields(KioskSettings):
            raw = self._environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                self.update_setting(f.name, raw)
        return self.settings

    def save_settings(self):
        """Save current settings to file."""
        if not self.settings_file:
            return
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, "w") as f:
                json.dump(asdict(self.settings), f, indent=2)
        except OSError as e:
            console.print(f"[yellow]Warning: failed to save settings: {e}[/yellow]")

    def update_setting(self, key: str, new_val) -> None:
        """Update a specific setting with validation."""
        if not hasattr(self.settings, key):
            raise SettingsError(f"Unknown setting '{key}'")
        try:
            if key in FLOAT_KEYS:
                setattr(self.settings, key, max(FLOAT_KEYS[key], float(new_val)))
            elif key in INT_KEYS:
                setattr(self.settings, key, max(INT_KEYS[key], int(new_val)))
            elif key in BOOL_KEYS:
                if isinstance(new_val, bool):
                    setattr(self.settings, key, new_val)
                else:
                    setattr(self.settings, key, str(new_val).strip().lower() in TRUTHY)
            elif key == "proxies":
                if isinstance(new_val, str):
                    parts = [p.strip() for p in new_val.split(",") if p.strip()]
                else:
                    parts = [str(p).strip() for p in new_val if str(p).strip()]
                self.settings.proxies = parts
            else:
                value = str(new_val).strip()
                if not value:
                    raise ValueError("must not be empty")
                setattr(self.settings, key, value)
        except (TypeError, ValueError) as e:
            raise SettingsError(
                f"Invalid value for '{key}'", details=str(e), original_error=e
            )

    def as_dict(self) -> Dict[str, object]:
        return asdict(self.settings)

    def settings_table(self) -> Table:
        """Render the effective settings as a table."""
        tbl = Table(show_header=True, title="Sheetboard settings")
        tbl.add_column("#", width=3)
        tbl.add_column("Setting", style="bold")
        tbl.add_column("Value", style="cyan")
        for i, (key, value) in enumerate(self.as_dict().items(), 1):
            if isinstance(value, list):
                value = ", ".join(value) or "(none)"
            elif isinstance(value, bool):
                value = "on" if value else "off"
            tbl.add_row(str(i), key, str(value))
        return tbl
