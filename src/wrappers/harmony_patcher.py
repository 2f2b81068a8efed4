"""
harmony_patcher.py
Runs the Windows Harmony patcher executable against a staged game assembly,
through Wine when not on Windows.

The patcher rewrites the merged Assembly-CSharp.dll so the game loads Harmony
mods from the mods folder on start. Output is streamed to log_fn line by line.

Exit codes:
  0  patched
  3  the user cancelled in the patcher's own prompt
  *  failure

Public entry point:  run_patcher(...)
"""

from __future__ import annotations

import os
import subprocess
from collections import deque
from pathlib import Path
from typing import Any, Callable

from Harmony.errors import PatcherError, UserCanceled
from Utils.config_paths import get_patcher_executable, get_wine_binary

_EXIT_OK = 0
_EXIT_CANCELLED = 3
_OUTPUT_TAIL = 20


def _linux_to_wine(path: str | Path) -> str:
    r"""Convert a Linux absolute path to a Wine Z:\ drive path."""
    return "Z:" + str(path).replace("/", "\\")


def build_patcher_args(
    extension_path: str,
    merged_file_path: str,
    entry_point: str,
    dry_run: bool,
    mods_path: str,
    inject_runtime: bool,
    runtime_dir: str,
    to_host: Callable[[str], str] = str,
) -> list[str]:
    """Return the patcher's command-line arguments (executable not included)."""
    args = [
        "-g", to_host(merged_file_path),
        "-m", to_host(mods_path),
        "-e", entry_point,
        "-x", to_host(extension_path),
        "-r", to_host(runtime_dir),
    ]
    if inject_runtime:
        args.append("-i")
    if dry_run:
        args.append("-q")
    return args


def run_patcher(
    extension_path: str,
    merged_file_path: str,
    entry_point: str,
    dry_run: bool,
    mods_path: str,
    context: Any,
    inject_runtime: bool,
    runtime_dir: str,
    log_fn: Callable[[str], None] | None = None,
) -> None:
    """Patch *merged_file_path* in place.

    *context* is the host's extension context; the patcher itself does not
    use it beyond identifying the caller.

    Raises UserCanceled when the user aborts, PatcherError on any other
    non-zero exit.
    """
    _log = log_fn or (lambda _: None)
    exe = get_patcher_executable()
    if not exe.is_file():
        raise FileNotFoundError(f"Harmony patcher not found: {exe}")

    wine = get_wine_binary()
    if wine is None and os.name != "nt":
        raise RuntimeError("No Wine installation found; cannot run the Harmony patcher.")

    to_host = _linux_to_wine if wine else str
    cmd = ([wine, str(exe)] if wine else [str(exe)]) + build_patcher_args(
        extension_path, merged_file_path, entry_point, dry_run,
        mods_path, inject_runtime, runtime_dir, to_host=to_host,
    )

    env = os.environ.copy()
    env["WINEDEBUG"] = "-all"

    _log(f"── Harmony patcher: {Path(merged_file_path).name} ──")
    tail: deque[str] = deque(maxlen=_OUTPUT_TAIL)
    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        env=env,
        text=True,
        errors="replace",
    )
    # Leaving the block closes stdout and reaps the child even if log_fn raises.
    with proc:
        assert proc.stdout is not None
        for line in proc.stdout:
            line = line.rstrip()
            if line.strip():
                tail.append(line)
                _log(f"  {line}")
        rc = proc.wait()

    if rc == _EXIT_OK:
        return
    if rc == _EXIT_CANCELLED:
        raise UserCanceled("Harmony patcher cancelled by user")
    raise PatcherError(
        f"Harmony patcher failed with exit code {rc}",
        exit_code=rc,
        output="\n".join(tail),
    )
