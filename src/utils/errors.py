"""Exceptions raised while toggling Data Factory triggers."""

from __future__ import annotations


class TriggerToggleError(Exception):
    """Base class for every failure surfaced by the toggle workflow."""


class AuthenticationError(TriggerToggleError):
    """Credential acquisition failed."""


class ResourceNotFoundError(TriggerToggleError):
    """The target Data Factory does not exist or cannot be reached."""


class ListingError(TriggerToggleError):
    """The trigger collection could not be listed."""


class ToggleError(TriggerToggleError):
    """A single trigger could not be switched to the desired state.

    Covers both a non-200 answer (``status_code`` is set) and a transport
    failure (``detail`` holds the underlying message).
    """

    def __init__(
        self,
        trigger_name: str,
        desired_state: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        self.trigger_name = trigger_name
        self.desired_state = desired_state
        self.status_code = status_code
        self.detail = detail
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        reason = f"HTTP {self.status_code}" if self.status_code is not None else "request failed"
        message = f"Failed to {self.desired_state} trigger '{self.trigger_name}' ({reason})"
        if self.detail:
            message = f"{message}: {self.detail}"
        return message
