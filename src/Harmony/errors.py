"""
errors.py
Exceptions raised by the Harmony deploy integration.
"""

from __future__ import annotations


class HarmonyError(Exception):
    """Base class for Harmony integration errors."""


class NotManagingGame(HarmonyError):
    """Raised when a merge runs while no game/profile is active.

    Merges only happen mid-deployment, so this points at a host
    orchestration bug rather than at anything the user did.
    """

    def __init__(self, message: str = "Not actively managing any game"):
        super().__init__(message)


class UserCanceled(HarmonyError):
    """Raised by the patcher when the user aborts it."""


class PatcherError(HarmonyError):
    """Raised when the external patcher exits with a failure code."""

    def __init__(self, message: str, exit_code: int = 0, output: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class MarkerModError(HarmonyError):
    """Raised when the host rejects creation of the marker mod."""
