"""Locate the IDA SDK and declare plugin, loader and library targets.

Typical use from a ``setup.py``::

    ctx = BuildContext(source_dir=HERE)
    sdk = find_ida_sdk(ctx)
    sdk.add_ida_plugin("myplugin", "src/myplugin.cc")
    sdk.add_ida_loader("myldr", "src/myloader.cc")
    setup(**setup_kwargs(ctx))

The ``ida_*`` pass-throughs mirror the :class:`BuildContext` methods so that
callers do not have to mix both APIs.
"""

from __future__ import annotations

import contextlib
import dataclasses
import os
import pathlib
import typing

from .buildsys.context import BuildContext
from .buildsys.targets import InstallRule, Target, TargetKind
from .core.config import ConfigConstants
from .core.errors import PlatformMismatchError, SdkNotFoundError
from .core.logging import IdaSdkLogger, getLogger
from .core.platform import Platform, detect_platform
from .discovery import SdkLocation, find_sdk, has_marker
from .libraries import IMPORTED_TARGET, register_imported_library, resolve_libraries

logger = getLogger(__name__)

COMMON_DEFINITIONS = (
    "__EA64__",
    "__X64__",
    "__IDP__",
    "USE_DANGEROUS_FUNCTIONS",
    "USE_STANDARD_FILE_FUNCTIONS",
)

# For qrefcnt_obj_t in ida.hpp.
UNIX_MODULE_OPTIONS = ("-Wno-non-virtual-dtor", "-Wno-varargs")

MAC_EXPORT_FLAGS = ("-Wl,-flat_namespace", "-Wl,-exported_symbol,_PLUGIN")


@contextlib.contextmanager
def _configuring(name: str):
    IdaSdkLogger.update_target(name)
    try:
        yield
    finally:
        IdaSdkLogger.reset_target()


@dataclasses.dataclass(slots=True)
class IdaSdk:
    """A located SDK bound to the context its targets are declared in."""

    ctx: BuildContext
    location: SdkLocation
    platform: Platform
    imported: Target

    @property
    def root(self) -> pathlib.Path:
        return self.location.root

    @property
    def include_dirs(self) -> list[pathlib.Path]:
        return list(self.location.include_dirs)

    def export_script(self, kind: str) -> pathlib.Path:
        """Linker version script for ``"plugin"`` or ``"loader"`` modules."""
        scripts = {
            "plugin": ConfigConstants.PLUGIN_EXPORTS,
            "loader": ConfigConstants.LOADER_EXPORTS,
        }
        return self.root / scripts[kind]

    def _common_target_settings(self, name: str) -> None:
        # The platform tag and __IDP__ are required by the SDK headers; the
        # last two allow "dangerous" and standard file functions.
        self.ctx.target_compile_definitions(
            name, "PUBLIC", self.platform.tag, *COMMON_DEFINITIONS
        )
        self.ctx.target_include_directories(name, "PUBLIC", *self.include_dirs)

    def _module(self, name: str, kind: str, sources: tuple[typing.Any, ...]) -> Target:
        with _configuring(name):
            target = self.ctx.add_library(name, TargetKind.MODULE.value, *sources)
            self._common_target_settings(name)

            self.ctx.set_target_properties(name, PREFIX="")
            self.ctx.target_link_libraries(name, IMPORTED_TARGET)
            if self.platform is Platform.MAC:
                self.ctx.target_link_libraries(name, *MAC_EXPORT_FLAGS)
            elif self.platform is Platform.LINUX:
                # Always use the linker script needed for IDA.
                self.ctx.target_link_libraries(
                    name, f"-Wl,--version-script,{self.export_script(kind)}"
                )
            if self.platform.is_unix:
                self.ctx.target_compile_options(name, "PUBLIC", *UNIX_MODULE_OPTIONS)
            logger.info("Declared IDA %s %s", kind, name)
        return target

    # ------------------------------------------------------------------
    # Declaration helpers
    # ------------------------------------------------------------------
    def add_ida_library(self, name: str, *args: typing.Any) -> Target:
        with _configuring(name):
            target = self.ctx.add_library(name, *args)
            self._common_target_settings(name)
            logger.info("Declared IDA library %s", name)
        return target

    def add_ida_plugin(self, name: str, *sources: typing.Any) -> Target:
        return self._module(name, "plugin", sources)

    def add_ida_loader(self, name: str, *sources: typing.Any) -> Target:
        return self._module(name, "loader", sources)

    def ida_target_link_libraries(self, name: str, *items: str) -> None:
        self.ctx.target_link_libraries(name, *items)

    def ida_target_include_directories(
        self, name: str, *dirs: str | os.PathLike[str]
    ) -> None:
        self.ctx.target_include_directories(name, *dirs)

    def set_ida_target_properties(self, *names: str, **properties: typing.Any) -> None:
        self.ctx.set_target_properties(*names, **properties)

    def ida_install(self, **kwargs: typing.Any) -> InstallRule:
        return self.ctx.install(**kwargs)


def _locate(
    ctx: BuildContext,
    root_dir: str | os.PathLike[str] | None,
    environ: typing.Mapping[str, str] | None,
) -> SdkLocation:
    cached = ctx.cache.get("IdaSdk_DIR")
    if root_dir is None and cached is not None and has_marker(pathlib.Path(cached)):
        return SdkLocation.from_root(pathlib.Path(cached))

    hint = root_dir or ctx.variables.get(ConfigConstants.ROOT_DIR_VARIABLE)
    return find_sdk(root_dir=hint, source_dir=ctx.source_dir, environ=environ)


@typing.overload
def find_ida_sdk(
    ctx: BuildContext,
    root_dir: str | os.PathLike[str] | None = ...,
    *,
    required: typing.Literal[True] = ...,
    system_name: str | None = ...,
    environ: typing.Mapping[str, str] | None = ...,
) -> IdaSdk: ...


@typing.overload
def find_ida_sdk(
    ctx: BuildContext,
    root_dir: str | os.PathLike[str] | None = ...,
    *,
    required: bool,
    system_name: str | None = ...,
    environ: typing.Mapping[str, str] | None = ...,
) -> IdaSdk | None: ...


def find_ida_sdk(
    ctx: BuildContext,
    root_dir: str | os.PathLike[str] | None = None,
    *,
    required: bool = True,
    system_name: str | None = None,
    environ: typing.Mapping[str, str] | None = None,
) -> IdaSdk | None:
    """Locate the SDK, resolve its libraries and declare ``ida64`` in `ctx`.

    Args:
        ctx: The context to declare targets in.
        root_dir: Explicit SDK root. Defaults to the ``IdaSdk_ROOT_DIR``
            context variable.
        required: When False, a missing SDK root returns None instead of
            raising. Missing libraries and unsupported hosts always raise.
        system_name: Host system name override, as ``platform.system()``
            would report it.
        environ: Environment to read ``IDASDK_ROOT`` from.

    Raises:
        SdkNotFoundError, LibraryNotFoundError, UnsupportedPlatformError,
        PlatformMismatchError
    """
    try:
        location = _locate(ctx, root_dir, environ)
    except SdkNotFoundError:
        ctx.variables["IdaSdk_FOUND"] = False
        if required:
            raise
        return None

    platform = detect_platform(system_name)
    configured = ctx.variables.get("IdaSdk_PLATFORM")
    if configured is not None and configured != platform.tag:
        logger.error("Context already configured for %s", configured)
        raise PlatformMismatchError(configured, platform.tag)
    # Every file check happens here, before anything is declared.
    libs = resolve_libraries(location.root, platform)

    ctx.cache["IdaSdk_DIR"] = location.root
    ctx.variables.update(
        {
            "IdaSdk_DIR": location.root,
            "IdaSdk_FOUND": True,
            "IdaSdk_INCLUDE_DIRS": list(location.include_dirs),
            "IdaSdk_PLATFORM": platform.tag,
        }
    )
    imported = register_imported_library(ctx, libs)
    return IdaSdk(ctx=ctx, location=location, platform=platform, imported=imported)
