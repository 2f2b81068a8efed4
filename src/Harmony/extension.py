"""
extension.py
Registers the harmonypatchermod mod type with the host.

Game handlers make a game a patch target by declaring harmonyPatchDetails
(see Harmony.patch_target). For such games init() wires up:

  - the mod type (priority 25), deployed into the game's install root
  - the merge that copies the patcher assemblies and runs the patcher
  - a will-deploy hook that keeps the per-profile marker mod present and,
    unless the user disabled it, enabled
"""

from __future__ import annotations

import functools
from typing import Mapping

from Utils.app_log import app_log

from .host import ExtensionContext, GameDescriptor, Instruction
from .marker_mod import MOD_TYPE, ensure_marker_mod
from .merge import PatcherFn, can_merge, get_current_game_info, is_harmony_instructions, merge
from .patch_target import resolve_patch_target

MOD_TYPE_PRIORITY = 25


def on_will_deploy(context: ExtensionContext, profile_id: str,
                   deployment: Mapping[str, list]) -> None:
    """Ensure the marker mod before files are deployed.

    A marker mod the user explicitly disabled stays disabled; in every other
    case (new mod, flag on, flag never set) it is enabled for the profile.
    """
    state = context.api.get_state()
    game_info = get_current_game_info(state)
    if game_info is None or resolve_patch_target(game_info.game) is None:
        return
    profile = state.profiles.get(profile_id)
    if profile is None:
        return

    mod_id = ensure_marker_mod(context.api, profile)
    known = state.get_mod(profile.game_id, mod_id) is not None
    if known and not profile.is_enabled(mod_id):
        app_log(f"Harmony: '{mod_id}' is disabled for this profile, leaving it off")
        return
    context.api.set_mod_enabled(profile.id, mod_id, True)


def init(context: ExtensionContext, run_patcher: PatcherFn | None = None) -> bool:
    """Register the Harmony mod type, merge and deploy hook on *context*."""
    if run_patcher is None:
        from wrappers.harmony_patcher import run_patcher

    def is_supported(game_id: str) -> bool:
        game_info = get_current_game_info(context.api.get_state())
        return game_info is not None and resolve_patch_target(game_info.game) is not None

    def get_path(game: GameDescriptor) -> str | None:
        return context.api.get_state().discovery_path(game.id)

    def test(instructions: list[Instruction]) -> bool:
        return is_harmony_instructions(instructions, context.api.get_state())

    context.register_mod_type(MOD_TYPE, MOD_TYPE_PRIORITY, is_supported, get_path, test)
    context.register_merge(
        can_merge,
        lambda file_path, merge_dir: merge(file_path, merge_dir, context, run_patcher),
        MOD_TYPE,
    )
    context.on_will_deploy(functools.partial(on_will_deploy, context))
    return True
