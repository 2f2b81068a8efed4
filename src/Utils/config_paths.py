"""
config_paths.py
Central helpers for resolving the Harmony patcher's user-writable locations.

Follows the XDG Base Directory Specification:
  Config lives in $XDG_CONFIG_HOME/AmethystModManager  (default: ~/.config/AmethystModManager)

The bundled patcher assemblies and the patcher executable live under the
config directory unless overridden through the environment, so an AppImage
build can ship them outside the read-only mount.
"""

import os
import shutil
import sys
from pathlib import Path

APP_NAME = "AmethystModManager"

_PATCHER_DIR_ENV = "HARMONY_PATCHER_DIR"
_PATCHER_EXE_ENV = "HARMONY_PATCHER_EXE"
_WINE_ENV = "HARMONY_WINE"
_PATCHER_EXE_NAME = "VortexHarmonyExec.exe"


def get_config_dir() -> Path:
    """Return the app config directory, creating it if it doesn't exist.

    Respects $XDG_CONFIG_HOME; falls back to ~/.config/AmethystModManager.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    config_dir = base / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_patcher_module_dir() -> Path:
    """Return the directory holding the patcher's bundled assemblies.

    $HARMONY_PATCHER_DIR wins when set.
    Default: ~/.config/AmethystModManager/harmony-patcher/dist/
    """
    env = os.environ.get(_PATCHER_DIR_ENV)
    if env:
        return Path(env)
    return get_config_dir() / "harmony-patcher" / "dist"


def get_patcher_executable() -> Path:
    """Return the patcher executable path.

    $HARMONY_PATCHER_EXE wins when set; otherwise the exe sits next to the
    bundled assemblies.
    """
    env = os.environ.get(_PATCHER_EXE_ENV)
    if env:
        return Path(env)
    return get_patcher_module_dir() / _PATCHER_EXE_NAME


def get_wine_binary() -> str | None:
    """Return the Wine binary used to launch the patcher, or None on Windows.

    $HARMONY_WINE wins when set, then ``wine`` on PATH.
    """
    if sys.platform == "win32":
        return None
    env = os.environ.get(_WINE_ENV)
    if env:
        return env
    return shutil.which("wine")
