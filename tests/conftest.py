from __future__ import annotations

import dataclasses
from concurrent.futures import Future
from pathlib import Path
from typing import Any

import pytest

from Harmony.host import ExtensionContext, GameDescriptor, HostState, ModRecord, Profile

PATCH_DETAILS = {
    "dataPath": "Game_Data/Managed",
    "entryPoint": "Game.Entry::Start",
    "modsPath": "Mods",
    "injectVIGO": True,
}


class FakeHost:
    """In-memory host: applies dispatches to its own state snapshot."""

    def __init__(self, state: HostState):
        self.state = state
        self.created: list[tuple[str, ModRecord]] = []
        self.attribute_calls: list[tuple[str, str, str, Any]] = []
        self.enable_calls: list[tuple[str, str, bool]] = []
        self.create_error: Exception | None = None

    def get_state(self) -> HostState:
        return self.state

    def create_mod(self, game_id: str, mod: ModRecord) -> Future:
        future: Future = Future()
        self.created.append((game_id, mod))
        if self.create_error is not None:
            future.set_exception(self.create_error)
            return future
        mods = {k: dict(v) for k, v in self.state.mods.items()}
        mods.setdefault(game_id, {})[mod.id] = mod
        self.state = dataclasses.replace(self.state, mods=mods)
        future.set_result(mod.id)
        return future

    def set_mod_attribute(self, game_id: str, mod_id: str, key: str, value: Any) -> None:
        self.attribute_calls.append((game_id, mod_id, key, value))

    def set_mod_enabled(self, profile_id: str, mod_id: str, enabled: bool) -> None:
        self.enable_calls.append((profile_id, mod_id, enabled))


def make_state(tmp_path: Path, details: dict | None = PATCH_DETAILS,
               profile_name: str = "Default", mod_state: dict | None = None,
               mods: dict | None = None) -> HostState:
    game_root = tmp_path / "game"
    game_root.mkdir(exist_ok=True)
    staging = tmp_path / "staging"
    staging.mkdir(exist_ok=True)
    game = GameDescriptor(
        id="valheim",
        extension_path=str(tmp_path / "extension"),
        details={"harmonyPatchDetails": details} if details is not None else {},
    )
    profile = Profile(id="p1", name=profile_name, game_id="valheim",
                      mod_state=mod_state or {})
    return HostState(
        profiles={"p1": profile},
        active_profile_id="p1",
        current_game=game,
        discovered={"valheim": str(game_root)},
        mods=mods or {},
        install_paths={"valheim": str(staging)},
    )


@pytest.fixture
def host(tmp_path):
    return FakeHost(make_state(tmp_path))


@pytest.fixture
def context(host):
    return ExtensionContext(host)
