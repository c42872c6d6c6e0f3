from __future__ import annotations


class LiveCalError(RuntimeError):
    """Base class for errors raised while tracking live calendar state."""


class ConfigurationError(LiveCalError):
    """Raised when live event settings are incomplete or invalid."""


class CommunicationError(LiveCalError):
    """Raised when the calendar or its bridge cannot be consulted."""
