"""
patch_target.py
Resolve the Harmony patcher configuration a game extension declares.

Game extensions opt in by registering their game with:

    details={"harmonyPatchDetails": {
        "dataPath":   "Game_Data/Managed/Assembly-CSharp.dll",
        "entryPoint": "Game.Entry::Start",
        "modsPath":   "Mods",
        "injectVIGO": False,
    }}

A game without that key is simply not a patch target. A key with an
unusable value is reported and treated the same way.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any, Mapping

from Utils.app_log import app_log

from .host import GameDescriptor

DETAILS_PATCH_TARGET = "harmonyPatchDetails"
ASSEMBLY_EXT = ".dll"
DEFAULT_UNITY_ASSEMBLY = "Assembly-CSharp.dll"


@dataclass(frozen=True)
class PatchTargetConfig:
    data_path: str        # relative to the game root, always an assembly file
    entry_point: str
    mods_path: str
    inject_runtime: bool = False


def _require_str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _require_relative(key: str, value: str) -> str:
    """Reject paths that would escape the game root or the merge directory."""
    win = PureWindowsPath(value)
    if os.path.isabs(value) or win.drive or win.root:
        raise ValueError(f"'{key}' must be relative to the game root, got {value!r}")
    if ".." in PurePosixPath(value.replace("\\", "/")).parts:
        raise ValueError(f"'{key}' must not leave the game root, got {value!r}")
    return value


def _decode(raw: Any) -> PatchTargetConfig:
    if not isinstance(raw, Mapping):
        raise ValueError(f"expected a mapping, got {type(raw).__name__}")
    data_path = _require_relative("dataPath", _require_str(raw, "dataPath"))
    if not data_path:
        raise ValueError("'dataPath' must not be empty")
    inject = raw.get("injectVIGO", False)
    if not isinstance(inject, bool):
        raise ValueError("'injectVIGO' must be a boolean")
    if not data_path.endswith(ASSEMBLY_EXT):
        data_path = os.path.join(data_path, DEFAULT_UNITY_ASSEMBLY)
    return PatchTargetConfig(
        data_path=data_path,
        entry_point=_require_str(raw, "entryPoint"),
        mods_path=_require_relative("modsPath", _require_str(raw, "modsPath")),
        inject_runtime=inject,
    )


def resolve_patch_target(game: GameDescriptor | None) -> PatchTargetConfig | None:
    """Return the game's patch configuration, or None if it has none."""
    if game is None or not game.details:
        return None
    raw = game.details.get(DETAILS_PATCH_TARGET)
    if not raw:
        return None
    try:
        return _decode(raw)
    except ValueError as exc:
        app_log(f"Harmony: invalid patcher details for {game.id}: {exc}", "error")
        return None


def is_patch_target(game: GameDescriptor | None) -> bool:
    return resolve_patch_target(game) is not None


def runtime_dir_for(path: str) -> str:
    """Directory holding the game's assemblies for a data path."""
    return os.path.dirname(path) if path.endswith(ASSEMBLY_EXT) else path
