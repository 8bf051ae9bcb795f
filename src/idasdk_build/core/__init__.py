"""
idasdk_build.core: infrastructure shared by the SDK locator and the build model.

Modules:
    config   - ConfigConstants and BuildConfiguration (JSON options file)
    errors   - IdaSdkError hierarchy
    logging  - IdaSdkLogger with MDC support, configure_loggers
    platform - Platform enum and host detection
"""

from .config import BuildConfiguration, ConfigConstants, default_ida_user_dir
from .errors import (
    DuplicateTargetError,
    IdaSdkError,
    InvalidLogLevelError,
    LibraryNotFoundError,
    PlatformMismatchError,
    SdkNotFoundError,
    UnknownTargetError,
    UnsupportedPlatformError,
)
from .logging import (
    IdaSdkLogger,
    LevelFlag,
    LoggerConfigurator,
    configure_loggers,
    getLogger,
)
from .platform import Platform, detect_platform

__all__ = [
    "BuildConfiguration",
    "ConfigConstants",
    "default_ida_user_dir",
    "DuplicateTargetError",
    "IdaSdkError",
    "InvalidLogLevelError",
    "LibraryNotFoundError",
    "PlatformMismatchError",
    "SdkNotFoundError",
    "UnknownTargetError",
    "UnsupportedPlatformError",
    "IdaSdkLogger",
    "LevelFlag",
    "LoggerConfigurator",
    "configure_loggers",
    "getLogger",
    "Platform",
    "detect_platform",
]
