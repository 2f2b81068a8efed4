"""
host.py
The surface the Harmony integration consumes from the mod manager host.

State is handed in as a read-only HostState snapshot; every write goes
through the HostApi dispatch methods. ExtensionContext collects the mod type,
merge and lifecycle-hook registrations made by Harmony.extension.init().

Layout of the snapshot:

  profiles         profile id -> Profile
  active_profile_id
  current_game     GameDescriptor of the game being managed (or None)
  discovered       game id -> game install directory
  mods             game id -> mod id -> ModRecord  (persistent mod registry)
  install_paths    game id -> mod staging root
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol


# ---------------------------------------------------------------------------
# State snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GameDescriptor:
    """A game as registered with the host.

    ``details`` carries vendor-supplied extras; the Harmony patcher reads
    its configuration from ``details["harmonyPatchDetails"]``.
    """
    id: str
    extension_path: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    game_id: str
    mod_state: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def is_enabled(self, mod_id: str) -> bool:
        """Per-profile enabled flag; only an explicit False counts as disabled."""
        return self.mod_state.get(mod_id, {}).get("enabled") is not False


@dataclass(frozen=True)
class ModRecord:
    id: str
    type: str = ""
    state: str = "installed"
    installation_path: str = ""
    attributes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HostState:
    profiles: Mapping[str, Profile] = field(default_factory=dict)
    active_profile_id: str | None = None
    current_game: GameDescriptor | None = None
    discovered: Mapping[str, str] = field(default_factory=dict)
    mods: Mapping[str, Mapping[str, ModRecord]] = field(default_factory=dict)
    install_paths: Mapping[str, str] = field(default_factory=dict)

    @property
    def active_profile(self) -> Profile | None:
        if self.active_profile_id is None:
            return None
        return self.profiles.get(self.active_profile_id)

    def discovery_path(self, game_id: str) -> str | None:
        return self.discovered.get(game_id) or None

    def install_path_for_game(self, game_id: str) -> str | None:
        return self.install_paths.get(game_id) or None

    def get_mod(self, game_id: str, mod_id: str) -> ModRecord | None:
        return self.mods.get(game_id, {}).get(mod_id)


@dataclass(frozen=True)
class GameStoredInfo:
    game: GameDescriptor
    discovery_path: str


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class HostApi(Protocol):

    def get_state(self) -> HostState:
        """Return the current state snapshot."""

    def create_mod(self, game_id: str, mod: ModRecord) -> "Future[str]":
        """Ask the host to add *mod* to the registry.

        The future resolves with the mod id, or carries the host's error.
        """

    def set_mod_attribute(self, game_id: str, mod_id: str, key: str, value: Any) -> None:
        """Upsert a single mod attribute (``type`` included)."""

    def set_mod_enabled(self, profile_id: str, mod_id: str, enabled: bool) -> None:
        """Set the per-profile enabled flag of a mod."""


# ---------------------------------------------------------------------------
# Registration surface
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Instruction:
    """One deployment instruction; only ``source`` matters to Harmony."""
    type: str = "copy"
    source: str | None = None
    destination: str | None = None


@dataclass(frozen=True)
class BaseFile:
    """A file the merge starts from: *in_path* absolute, *out* relative to the merge dir."""
    in_path: str
    out: str


@dataclass
class MergeFilter:
    base_files: Callable[[], list[BaseFile]]
    filter: Callable[[str], bool]


@dataclass(frozen=True)
class ModTypeRegistration:
    name: str
    priority: int
    is_supported: Callable[[str], bool]
    get_path: Callable[[GameDescriptor], str | None]
    test: Callable[[list[Instruction]], bool]


@dataclass(frozen=True)
class MergeRegistration:
    test: Callable[[GameDescriptor, str], MergeFilter | None]
    merge: Callable[[str, str], None]
    mod_type: str


WillDeployHook = Callable[[str, Mapping[str, list]], None]


class ExtensionContext:
    """Registration surface handed to Harmony.extension.init()."""

    def __init__(self, api: HostApi):
        self.api = api
        self.mod_types: list[ModTypeRegistration] = []
        self.merges: list[MergeRegistration] = []
        self.will_deploy_hooks: list[WillDeployHook] = []

    def register_mod_type(self, name: str, priority: int,
                          is_supported: Callable[[str], bool],
                          get_path: Callable[[GameDescriptor], str | None],
                          test: Callable[[list[Instruction]], bool]) -> None:
        self.mod_types.append(
            ModTypeRegistration(name, priority, is_supported, get_path, test))

    def register_merge(self, test: Callable[[GameDescriptor, str], MergeFilter | None],
                       merge: Callable[[str, str], None], mod_type: str) -> None:
        self.merges.append(MergeRegistration(test, merge, mod_type))

    def on_will_deploy(self, hook: WillDeployHook) -> None:
        self.will_deploy_hooks.append(hook)

    def emit_will_deploy(self, profile_id: str, deployment: Mapping[str, list]) -> None:
        """Fire every will-deploy hook in registration order."""
        for hook in self.will_deploy_hooks:
            hook(profile_id, deployment)
