"""
Harmony patcher deploy integration.

Injects the Harmony runtime patcher into Unity games that declare
harmonyPatchDetails, as the harmonypatchermod step of a deployment.
"""

from .assemblies import deploy_assemblies, diff_assemblies, list_game_assemblies
from .errors import HarmonyError, MarkerModError, NotManagingGame, PatcherError, UserCanceled
from .extension import init, on_will_deploy
from .host import ExtensionContext, GameDescriptor, HostState, ModRecord, Profile
from .marker_mod import SENTINEL_FILE, ensure_marker_mod, marker_mod_id
from .merge import merge
from .patch_target import PatchTargetConfig, resolve_patch_target

__all__ = ["deploy_assemblies", "diff_assemblies", "list_game_assemblies",
           "HarmonyError", "MarkerModError", "NotManagingGame", "PatcherError",
           "UserCanceled", "init", "on_will_deploy", "ExtensionContext",
           "GameDescriptor", "HostState", "ModRecord", "Profile", "SENTINEL_FILE",
           "ensure_marker_mod", "marker_mod_id", "merge", "PatchTargetConfig",
           "resolve_patch_target"]
