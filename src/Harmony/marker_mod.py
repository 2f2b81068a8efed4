"""
marker_mod.py
Keep the per-profile "Vortex Harmony Mod" marker mod in the host's mod registry.

The marker mod holds nothing but a zero-byte sentinel file. Its presence in a
deployment tells the merge filter which files belong to the harmonypatchermod
type, and its enabled flag lets the user switch the patcher off per profile.

ensure_marker_mod() creates the mod on first use. On later deploys it rewrites
the identity attributes, which also upgrades records written by older versions
that used different names/types.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from Utils.app_log import app_log

from .errors import MarkerModError
from .host import HostApi, ModRecord, Profile

MOD_TYPE = "harmonypatchermod"
SENTINEL_FILE = "__harmony_merge_fake_file"

_MOD_NAME = "Vortex Harmony Mod"
# Only needs to be stable; the host groups mods by it.
_MOD_ID_NUMBER = 42
_MOD_VERSION = "1.0.0"

# Mostly invalid on Windows only, but profile names travel between systems.
_INVALID_CHARS = re.compile(r'[:/\\*?"<>|]')


def sanitize_profile_name(name: str) -> str:
    return _INVALID_CHARS.sub("_", name)


def marker_mod_id(profile_name: str) -> str:
    """Registry id of the marker mod for a profile, e.g. 'Vortex Harmony Mod (Default)'."""
    return f"{_MOD_NAME} ({sanitize_profile_name(profile_name)})"


def _identity_attributes(profile: Profile) -> dict:
    return {
        "name":            _MOD_NAME,
        "logicalFileName": _MOD_NAME,
        "modId":           _MOD_ID_NUMBER,
        "version":         _MOD_VERSION,
        "variant":         sanitize_profile_name(profile.name),
    }


def build_marker_mod(profile: Profile) -> ModRecord:
    mod_id = marker_mod_id(profile.name)
    attributes = _identity_attributes(profile)
    attributes["installTime"] = datetime.now()
    return ModRecord(
        id=mod_id,
        type=MOD_TYPE,
        state="installed",
        installation_path=mod_id,
        attributes=attributes,
    )


def _install_path(api: HostApi, profile: Profile) -> Path:
    install_path = api.get_state().install_path_for_game(profile.game_id)
    if install_path is None:
        raise MarkerModError(f"No mod install path known for game '{profile.game_id}'")
    return Path(install_path)


def _write_sentinel(mod_root: Path) -> None:
    sentinel = mod_root / SENTINEL_FILE
    sentinel.parent.mkdir(parents=True, exist_ok=True)
    sentinel.touch(exist_ok=True)


def _create_marker_mod(api: HostApi, profile: Profile, mod: ModRecord) -> None:
    # Resolved up front so a registered mod never ends up without its sentinel.
    install_path = _install_path(api, profile)
    future = api.create_mod(profile.game_id, mod)
    exc = future.exception()
    if exc is not None:
        raise exc
    _write_sentinel(install_path / mod.installation_path)
    app_log(f"Harmony: created marker mod '{mod.id}'")


def _refresh_marker_mod(api: HostApi, profile: Profile, mod: ModRecord) -> None:
    mod_id = mod.id
    # installTime shows the user when this was last deployed; the rest only
    # matters for records created by older versions.
    api.set_mod_attribute(profile.game_id, mod_id, "installTime", datetime.now())
    api.set_mod_attribute(profile.game_id, mod_id, "type", MOD_TYPE)
    for key, value in _identity_attributes(profile).items():
        api.set_mod_attribute(profile.game_id, mod_id, key, value)
    _write_sentinel(_install_path(api, profile) / (mod.installation_path or mod_id))


def ensure_marker_mod(api: HostApi, profile: Profile) -> str:
    """Make sure the profile's marker mod exists and return its id."""
    mod_id = marker_mod_id(profile.name)
    existing = api.get_state().get_mod(profile.game_id, mod_id)
    if existing is None:
        _create_marker_mod(api, profile, build_marker_mod(profile))
    else:
        _refresh_marker_mod(api, profile, existing)
    return mod_id
