"""
merge.py
The harmonypatchermod merge step.

During deployment the host stages the game's Assembly-CSharp.dll (the merge
base file) into a merge directory. merge() then copies the patcher's support
assemblies next to it and runs the patcher on the staged copy, so the game's
original file is never modified in place.

Only deployments that contain the marker mod's sentinel file are merged; see
can_merge() and is_harmony_instructions().
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

from Utils.app_log import app_log
from Utils.config_paths import get_patcher_module_dir

from .assemblies import deploy_patcher_assemblies
from .errors import NotManagingGame, UserCanceled
from .host import (BaseFile, ExtensionContext, GameDescriptor, GameStoredInfo,
                   HostState, Instruction, MergeFilter)
from .marker_mod import SENTINEL_FILE
from .patch_target import resolve_patch_target, runtime_dir_for

PatcherFn = Callable[..., None]


def get_current_game_info(state: HostState | None) -> GameStoredInfo | None:
    """Return the managed game and its install path, or None.

    The active profile must belong to the current game and the game must
    have been discovered on disk.
    """
    if state is None:
        return None
    profile = state.active_profile
    game = state.current_game
    if game is None or profile is None or game.id != profile.game_id:
        return None
    discovery_path = state.discovery_path(game.id)
    if discovery_path is None:
        return None
    return GameStoredInfo(game=game, discovery_path=discovery_path)


def is_harmony_instructions(instructions: list[Instruction], state: HostState) -> bool:
    """True when any instruction comes from the marker mod's sentinel file."""
    game_info = get_current_game_info(state)
    if game_info is None or resolve_patch_target(game_info.game) is None:
        return False
    return any(
        instr is not None and instr.source and SENTINEL_FILE in instr.source
        for instr in instructions
    )


def can_merge(game: GameDescriptor, discovery_path: str) -> MergeFilter | None:
    """Merge filter for *game*: the staged base assembly plus sentinel-bearing files."""
    target = resolve_patch_target(game)
    if target is None:
        return None
    return MergeFilter(
        base_files=lambda: [
            BaseFile(in_path=os.path.join(discovery_path, target.data_path),
                     out=target.data_path),
        ],
        filter=lambda file_path: SENTINEL_FILE in file_path,
    )


def merge(
    file_path: str,
    merge_dir: str,
    context: ExtensionContext,
    run_patcher: PatcherFn,
    module_dir: Path | None = None,
    log_fn=None,
) -> None:
    """Deploy the patcher assemblies into *merge_dir* and patch the staged assembly.

    file_path  - the file that triggered the merge (the sentinel)
    merge_dir  - staging directory for this mod type
    run_patcher - callable with the wrappers.harmony_patcher.run_patcher signature
    module_dir - bundled assemblies; defaults to get_patcher_module_dir()

    Returns quietly when the game is no patch target or the base assembly was
    not staged. A cancelled patcher run counts as success.
    """
    game_info = get_current_game_info(context.api.get_state())
    if game_info is None:
        raise NotManagingGame()

    target = resolve_patch_target(game_info.game)
    if target is None:
        return

    discovery = Path(game_info.discovery_path)
    data_path = discovery / target.data_path
    mods_path = discovery / target.mods_path
    merged_file_path = Path(merge_dir) / target.data_path
    runtime_dir = Path(runtime_dir_for(str(data_path)))

    if not merged_file_path.is_file():
        app_log(f"Harmony: {merged_file_path} was not staged, nothing to patch", "debug")
        return

    try:
        deploy_patcher_assemblies(
            target.data_path,
            Path(merge_dir),
            runtime_dir,
            module_dir or get_patcher_module_dir(),
            log_fn=log_fn,
        )
        run_patcher(
            game_info.game.extension_path,
            str(merged_file_path),
            target.entry_point,
            False,
            str(mods_path),
            context,
            target.inject_runtime,
            str(runtime_dir),
        )
    except UserCanceled:
        app_log("Harmony: patcher cancelled by user")
