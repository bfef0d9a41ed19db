"""Utilities for resolving resource, configuration and result paths."""
from __future__ import annotations

import os
import sys
from pathlib import Path

APP_NAME = "GasBox"
CONFIG_ENV = "GASBOX_CONFIG"


def _env_path(name: str, fallback: Path) -> Path:
    value = os.environ.get(name)
    return Path(value) if value else fallback


def is_frozen() -> bool:
    """Return True when running inside a PyInstaller bundle."""
    return bool(getattr(sys, "frozen", False))


def resource_root() -> Path:
    """Base directory containing packaged resources."""
    if is_frozen():
        bundle_dir = getattr(sys, "_MEIPASS", None)
        if bundle_dir:
            return Path(bundle_dir)
    return Path(__file__).resolve().parent


def resource_file(relative: str | Path) -> Path:
    """Resolve ``relative`` inside the resource root."""
    return resource_root() / Path(relative)


def config_path() -> Path:
    """Location of the active ``config.json``.

    ``GASBOX_CONFIG`` wins over the bundled defaults so that runs (and tests)
    can point at their own parameter file.
    """
    return _env_path(CONFIG_ENV, resource_file("config.json"))


def results_path(directory: str | Path) -> Path:
    """Resolve the results directory; relative paths are taken from the cwd."""
    path = Path(directory).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path
