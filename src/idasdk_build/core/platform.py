"""Host platform classification.

The IDA SDK headers select their platform-specific code through one of three
preprocessor symbols. This module maps the host operating system onto
exactly one of them.
"""

from __future__ import annotations

import platform
from enum import Enum

from .errors import UnsupportedPlatformError
from .logging import getLogger

logger = getLogger(__name__)


class Platform(Enum):
    """Host platform, valued by the SDK platform tag."""

    MAC = "__MAC__"
    LINUX = "__LINUX__"
    WINDOWS = "__NT__"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def is_unix(self) -> bool:
        return self is not Platform.WINDOWS

    @property
    def module_suffix(self) -> str:
        """Default file suffix of a loadable module on this platform."""
        return ".dll" if self is Platform.WINDOWS else ".so"


# Unix flavours other than macOS all use the Linux branch of the SDK.
_UNIX_SYSTEMS = frozenset(
    {"Linux", "FreeBSD", "OpenBSD", "NetBSD", "DragonFly", "SunOS", "AIX"}
)


def detect_platform(system_name: str | None = None) -> Platform:
    """Classify `system_name` (default: ``platform.system()``).

    Apple is tested before the generic Unix case.

    Raises:
        UnsupportedPlatformError: for any other operating system.
    """
    system = system_name or platform.system()

    if system == "Darwin":
        result = Platform.MAC
    elif system in _UNIX_SYSTEMS:
        result = Platform.LINUX
    elif system == "Windows":
        result = Platform.WINDOWS
    else:
        logger.error("Unsupported system type: %s", system)
        raise UnsupportedPlatformError(system)

    logger.debug("Host system %s uses platform tag %s", system, result.tag)
    return result
