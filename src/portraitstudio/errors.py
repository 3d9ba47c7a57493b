from __future__ import annotations


class PortraitError(Exception):
    """Base class for every failure surfaced to the user.

    ``str(err)`` is the user-facing message; none of these are fatal to a session.
    """


class ConfigError(PortraitError):
    pass


class ValidationError(PortraitError):
    """Uploaded file rejected by type or size."""


class IOFailure(PortraitError):
    """The uploaded file could not be read."""


class GenerationError(PortraitError):
    pass


class EmptyResponse(GenerationError):
    """The model answered without any image part (possibly blocked)."""


class TransportError(GenerationError):
    """The remote call itself failed (network, auth, quota)."""
