"""
assemblies.py
Copy the Harmony patcher's support assemblies into a staged Unity data folder.

Provides filter_module_assemblies(), diff_assemblies(), list_game_assemblies(),
deploy_assemblies() and deploy_patcher_assemblies().

Three listings go into the diff:
  bundled     - assemblies shipped with the patcher (its module directory)
  existing    - assemblies already in the staged merge directory
  game_owned  - real (non-symlink) assemblies in the game's Managed folder

Only bundled files missing from both other listings are copied. The game's
own assemblies are never replaced: the patcher's System.* builds can differ
from the ones the game's runtime ships with.

Copying is all-or-nothing: on the first failure every file copied so far in
this attempt is removed again and the original error is re-raised.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Callable, Iterable

from Utils.app_log import app_log

from .patch_target import ASSEMBLY_EXT, runtime_dir_for

log = logging.getLogger(__name__)

_SYSTEM_PREFIX = "System"
# Needed by the patcher's own JSON parsing and safe to bring along.
_SERIALIZATION_ASSEMBLY = "System.Runtime.Serialization.dll"


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------

def filter_module_assemblies(listing: Iterable[str]) -> list[str]:
    """Keep non-system assemblies plus the serialization assembly, in listing order."""
    return [
        name for name in listing
        if (name.endswith(ASSEMBLY_EXT) and not name.startswith(_SYSTEM_PREFIX))
        or name == _SERIALIZATION_ASSEMBLY
    ]


def diff_assemblies(
    module_listing: Iterable[str],
    destination_listing: Iterable[str],
    runtime_listing: Iterable[str],
) -> list[str]:
    """Return the bundled assemblies that must be copied to the destination.

    runtime_listing must already exclude symlinks (see list_game_assemblies).
    Order follows module_listing.
    """
    blocked = set(destination_listing) | set(runtime_listing)
    return [name for name in filter_module_assemblies(module_listing)
            if name not in blocked]


def list_game_assemblies(runtime_dir: Path) -> list[str]:
    """Return the .dll files in runtime_dir that are not symbolic links.

    Symlinks were put there by a previous deploy, so they do not count as
    game-owned. Entries that cannot be stat'ed are skipped.
    """
    if not runtime_dir.is_dir():
        return []
    owned: list[str] = []
    for name in sorted(os.listdir(runtime_dir)):
        if not name.endswith(ASSEMBLY_EXT):
            continue
        try:
            st = (runtime_dir / name).lstat()
        except OSError:
            continue
        if not stat.S_ISLNK(st.st_mode):
            owned.append(name)
    return owned


def _list_dir(directory: Path) -> list[str]:
    if not directory.is_dir():
        return []
    return sorted(os.listdir(directory))


# ---------------------------------------------------------------------------
# Copy with rollback
# ---------------------------------------------------------------------------

def _rollback(copied: list[Path], log_fn) -> None:
    """Remove every file in *copied*; each removal is attempted independently."""
    for path in copied:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            log.warning("failed to clean up copied assembly %s: %s", path, exc)
            log_fn(f"  Warning: could not remove {path.name}: {exc}")


def deploy_assemblies(
    assemblies: Iterable[str],
    source_dir: Path,
    dest_dir: Path,
    copy_fn: Callable[[Path, Path], object] | None = None,
    log_fn=None,
) -> list[Path]:
    """Copy each named assembly from source_dir into dest_dir.

    copy_fn - transfer callable, defaults to shutil.copy2
    Returns the destination paths written, in copy order.

    If any copy fails, the files already copied in this call are removed and
    the exception from that copy is re-raised unchanged, even if the cleanup
    itself runs into errors.
    """
    _log = log_fn or (lambda _: None)
    _copy = copy_fn or shutil.copy2
    copied: list[Path] = []

    for name in assemblies:
        dst = dest_dir / name
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            _copy(source_dir / name, dst)
        except Exception as exc:
            app_log(f"Harmony: failed to copy required patcher assembly {name}: {exc}",
                    "error")
            _rollback(copied, _log)
            raise
        copied.append(dst)
        _log(f"  Copied {name}")

    return copied


def deploy_patcher_assemblies(
    rel_data_path: str,
    merge_dir: Path,
    runtime_dir: Path,
    module_dir: Path,
    copy_fn: Callable[[Path, Path], object] | None = None,
    log_fn=None,
) -> list[Path]:
    """Bring the patcher's assemblies into the staged copy of the game's Managed folder.

    rel_data_path - data path relative to the game root (file or directory)
    merge_dir     - staging directory of the merge
    runtime_dir   - the game's real Managed folder
    module_dir    - where the patcher's bundled assemblies live
    """
    assembly_dir = merge_dir / runtime_dir_for(rel_data_path)
    needed = diff_assemblies(
        _list_dir(module_dir),
        _list_dir(assembly_dir),
        list_game_assemblies(runtime_dir),
    )
    log.debug("patcher assemblies to deploy into %s: %s", assembly_dir, needed)
    return deploy_assemblies(needed, module_dir, assembly_dir,
                             copy_fn=copy_fn, log_fn=log_fn)
