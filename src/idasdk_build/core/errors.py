"""Exceptions raised while configuring an IDA SDK build.

Every failure is terminal for the configuration run: nothing is retried and
no partial state is expected to be usable afterwards.
"""

from __future__ import annotations

import pathlib


class IdaSdkError(Exception):
    """Base class for configuration errors."""


class SdkNotFoundError(IdaSdkError):
    """No hinted directory contains the SDK marker header."""

    def __init__(self, variable: str, searched: list[pathlib.Path] | None = None):
        self.variable = variable
        self.searched = list(searched or [])
        msg = f"IDA SDK not found, try setting {variable}"
        if self.searched:
            msg += " (searched: " + ", ".join(str(p) for p in self.searched) + ")"
        super().__init__(msg)


class LibraryNotFoundError(IdaSdkError):
    """A prebuilt SDK library expected for the host platform is missing."""

    def __init__(self, path: pathlib.Path):
        self.path = path
        super().__init__(f"IDA SDK library not found: {path}")


class UnsupportedPlatformError(IdaSdkError):
    """The host operating system is not one the SDK ships libraries for."""

    def __init__(self, system_name: str):
        self.system_name = system_name
        super().__init__(f"Unsupported system type: {system_name}")


class InvalidLogLevelError(IdaSdkError, ValueError):
    def __init__(self, level: str):
        self.level = level
        super().__init__(f"Unknown logging level: {level}")


class PlatformMismatchError(IdaSdkError):
    """The context was already configured for another platform."""

    def __init__(self, configured: str, requested: str):
        self.configured = configured
        self.requested = requested
        super().__init__(
            f"Context already configured for {configured}, cannot configure {requested}"
        )


class DuplicateTargetError(IdaSdkError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Target {name!r} is already declared")


class UnknownTargetError(IdaSdkError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Target {name!r} is not declared")
