"""Exceptions raised by daylight-wallpaper.

Everything inherits from DaylightWallpaperError so the command-line entry
point can turn any failure into an exit status with a single except clause.
"""


class DaylightWallpaperError(Exception):
    """Base exception for all daylight-wallpaper errors."""

    exit_status = 1


class ConfigurationError(DaylightWallpaperError):
    """Raised when required settings are missing or invalid."""

    exit_status = 2


class MissingCommandError(DaylightWallpaperError):
    """Raised when the wallpaper command is not available on PATH."""

    exit_status = 2


class ProviderError(DaylightWallpaperError):
    """Raised when a remote API could not be reached or returned garbage."""


class InvalidResponseError(ProviderError):
    """Raised when a remote API answered but the data failed validation."""


class RetriesExhaustedError(DaylightWallpaperError):
    """
    Raised when every attempt to obtain valid data for a cache kind failed.

    Args:
        kind: Name of the data kind ("geo" or "sun")
        attempts: Number of attempts that were made
        reason: Reason the last attempt was rejected
    """

    def __init__(self, kind: str, attempts: int, reason: str):
        self.kind = kind
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"No valid {kind} data after {attempts} attempts (last error: {reason})"
        )


class WallpaperError(DaylightWallpaperError):
    """Raised when the wallpaper could not be applied."""


class PeriodResolutionError(DaylightWallpaperError):
    """Raised when the current time matches no period (inconsistent sun times)."""

    exit_status = 3
