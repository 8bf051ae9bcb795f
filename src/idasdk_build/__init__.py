"""Locate the IDA Pro SDK and build plugins and loaders against it with setuptools."""

from .buildsys import BuildContext, CustomTarget, InstallRule, Target, TargetKind
from .buildsys.setuptools_ext import setup_kwargs
from .core import (
    IdaSdkError,
    LibraryNotFoundError,
    Platform,
    SdkNotFoundError,
    UnsupportedPlatformError,
    configure_loggers,
    getLogger,
)
from .discovery import SdkLocation, find_sdk
from .ida import IdaSdk, find_ida_sdk

__version__ = "0.1.0"

__all__ = [
    "BuildContext",
    "CustomTarget",
    "InstallRule",
    "Target",
    "TargetKind",
    "setup_kwargs",
    "IdaSdkError",
    "LibraryNotFoundError",
    "Platform",
    "SdkNotFoundError",
    "UnsupportedPlatformError",
    "configure_loggers",
    "getLogger",
    "SdkLocation",
    "find_sdk",
    "IdaSdk",
    "find_ida_sdk",
]
