"""IDA SDK root discovery.

The SDK is found by probing a fixed, ordered list of hint directories for the
``include/pro.h`` marker header. System-wide default locations are never
searched.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import typing

from .core.config import ConfigConstants
from .core.errors import SdkNotFoundError
from .core.logging import LevelFlag, getLogger

logger = getLogger(__name__)
_debug_on = LevelFlag(logger.name, logging.DEBUG)


@dataclasses.dataclass(frozen=True, slots=True)
class SdkLocation:
    root: pathlib.Path
    include_dirs: tuple[pathlib.Path, ...]

    @classmethod
    def from_root(cls, root: pathlib.Path) -> "SdkLocation":
        return cls(root=root, include_dirs=(root / "include",))


def has_marker(directory: pathlib.Path) -> bool:
    return (directory / ConfigConstants.MARKER_HEADER).is_file()


def candidate_dirs(
    *,
    root_dir: str | os.PathLike[str] | None = None,
    source_dir: str | os.PathLike[str] | None = None,
    environ: typing.Mapping[str, str] | None = None,
) -> list[pathlib.Path]:
    """Return the directories to probe, in order.

    Hints are the explicit root, the ``IDASDK_ROOT`` environment variable and
    ``<source_dir>/third_party/idasdk``. Each is tried with the ``idasdk``
    suffix first, then as given.
    """
    env = os.environ if environ is None else environ
    hints: list[pathlib.Path] = []
    if root_dir:
        hints.append(pathlib.Path(root_dir))
    env_root = env.get(ConfigConstants.ROOT_ENV_VARIABLE)
    if env_root:
        hints.append(pathlib.Path(env_root))
    if source_dir is not None:
        hints.append(pathlib.Path(source_dir) / ConfigConstants.FALLBACK_PATH)

    candidates: list[pathlib.Path] = []
    seen: set[pathlib.Path] = set()

    def add(path: pathlib.Path) -> None:
        p = path.expanduser()
        if p in seen:
            return
        seen.add(p)
        candidates.append(p)

    for hint in hints:
        add(hint / ConfigConstants.PATH_SUFFIX)
        add(hint)
    return candidates


def find_sdk(
    *,
    root_dir: str | os.PathLike[str] | None = None,
    source_dir: str | os.PathLike[str] | None = None,
    environ: typing.Mapping[str, str] | None = None,
) -> SdkLocation:
    """Locate the SDK root; the first candidate holding the marker wins.

    Raises:
        SdkNotFoundError: if no candidate contains ``include/pro.h``.
    """
    candidates = candidate_dirs(
        root_dir=root_dir, source_dir=source_dir, environ=environ
    )
    for candidate in candidates:
        if has_marker(candidate):
            root = candidate.resolve()
            logger.info("Found IDA SDK: %s", root)
            return SdkLocation.from_root(root)
        if _debug_on:
            logger.debug("No IDA SDK at %s", candidate)

    logger.error(
        "IDA SDK not found, try setting %s", ConfigConstants.ROOT_DIR_VARIABLE
    )
    raise SdkNotFoundError(ConfigConstants.ROOT_DIR_VARIABLE, candidates)
