"""Prebuilt SDK library resolution and the ``ida64`` imported target.

Hex-Rays ships ``libida`` per platform under ``<sdk>/lib/<platform dir>``.
On macOS there is one single-architecture dylib per CPU, so they are merged
into a universal dylib with ``lipo`` before anything links against them.
"""

from __future__ import annotations

import dataclasses
import pathlib

from .buildsys.context import BuildContext
from .buildsys.targets import Target, TargetKind
from .core.config import ConfigConstants
from .core.errors import LibraryNotFoundError, UnknownTargetError
from .core.logging import getLogger
from .core.platform import Platform

logger = getLogger(__name__)

IMPORTED_TARGET = "ida64"
UNIVERSAL_TARGET = "ida64_universal"
_UNIVERSAL_CACHE_KEY = "_ida64_universal_lib"


@dataclasses.dataclass(frozen=True, slots=True)
class SdkLibraries:
    """Library files found for one platform.

    Attributes:
        platform: The platform these files belong to.
        variables: Output variables to publish, e.g. ``IdaSdk_LIBPATH64``.
        location: The shared library (Linux) or import library (Windows).
        universal_inputs: The arm64 and x86_64 dylibs to merge (macOS).
    """

    platform: Platform
    variables: dict[str, pathlib.Path]
    location: pathlib.Path | None = None
    universal_inputs: tuple[pathlib.Path, ...] = ()


def _require_file(path: pathlib.Path) -> pathlib.Path:
    if not path.is_file():
        logger.error("IDA SDK library not found: %s", path)
        raise LibraryNotFoundError(path)
    return path


def resolve_libraries(sdk_root: pathlib.Path, platform: Platform) -> SdkLibraries:
    """Check that every library file `platform` needs exists under `sdk_root`.

    Raises:
        LibraryNotFoundError: naming the first missing file.
    """
    lib_root = sdk_root / "lib"

    if platform is Platform.MAC:
        x64 = _require_file(lib_root / ConfigConstants.LIBDIR_MAC_X64 / "libida.dylib")
        arm64 = _require_file(
            lib_root / ConfigConstants.LIBDIR_MAC_ARM64 / "libida.dylib"
        )
        return SdkLibraries(
            platform=platform,
            variables={
                "IdaSdk_LIBPATH64_X64": x64.parent,
                "IdaSdk_LIBPATH64_ARM64": arm64.parent,
            },
            universal_inputs=(arm64, x64),
        )
    elif platform is Platform.LINUX:
        lib = _require_file(lib_root / ConfigConstants.LIBDIR_LINUX / "libida.so")
        return SdkLibraries(
            platform=platform,
            variables={"IdaSdk_LIBPATH64": lib.parent},
            location=lib,
        )
    else:
        lib = _require_file(lib_root / ConfigConstants.LIBDIR_WINDOWS / "ida.lib")
        return SdkLibraries(
            platform=platform,
            variables={"IdaSdk_LIB64": lib},
            location=lib,
        )


def universal_library_path(ctx: BuildContext) -> pathlib.Path:
    """Where the merged macOS dylib goes, fixed on first use per context."""
    path = ctx.cache.get(_UNIVERSAL_CACHE_KEY)
    if path is None:
        path = ctx.binary_dir / ConfigConstants.UNIVERSAL_LIB_NAME
        ctx.cache[_UNIVERSAL_CACHE_KEY] = path
    return path


def register_universal_merge(ctx: BuildContext, libs: SdkLibraries) -> pathlib.Path:
    """Declare the ``lipo`` merge action unless it already exists."""
    output = universal_library_path(ctx)
    if not ctx.has_target(UNIVERSAL_TARGET):
        arm64, x64 = libs.universal_inputs
        ctx.add_custom_target(
            UNIVERSAL_TARGET,
            command=[
                ConfigConstants.MERGE_TOOL,
                "-create",
                arm64,
                x64,
                "-output",
                output,
            ],
            depends=[arm64, x64],
            byproducts=[output],
        )
        logger.debug("Declared universal library merge into %s", output)
    return output


def register_imported_library(ctx: BuildContext, libs: SdkLibraries) -> Target:
    """Declare (or return the existing) ``ida64`` imported target."""
    for name, value in libs.variables.items():
        ctx.variables[name] = value

    if ctx.has_target(IMPORTED_TARGET):
        target = ctx.get_target(IMPORTED_TARGET)
        if not isinstance(target, Target):
            raise UnknownTargetError(IMPORTED_TARGET)
        return target

    if libs.platform is Platform.MAC:
        location = register_universal_merge(ctx, libs)
        target = ctx.add_imported_library(IMPORTED_TARGET, TargetKind.SHARED)
        ctx.add_dependencies(IMPORTED_TARGET, UNIVERSAL_TARGET)
        target.imported_location = location
    elif libs.platform is Platform.LINUX:
        target = ctx.add_imported_library(IMPORTED_TARGET, TargetKind.SHARED)
        target.imported_location = libs.location
    else:
        target = ctx.add_imported_library(IMPORTED_TARGET, TargetKind.SHARED)
        target.imported_location = libs.location
        target.imported_implib = libs.location
    return target
