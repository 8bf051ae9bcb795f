"""Lower a :class:`BuildContext` onto setuptools.

MODULE and SHARED targets become :class:`setuptools.Extension` objects built
by :class:`IdaBuildExt`, STATIC targets become ``build_clib`` libraries, and
install rules are carried out by the ``install_ida`` command::

    setup(name="myplugin", **setup_kwargs(ctx))
"""

from __future__ import annotations

import os
import pathlib
import typing

from setuptools import Command, Extension
from setuptools.command.build_ext import build_ext

from ..core.config import default_ida_user_dir
from ..core.logging import getLogger
from ..core.platform import Platform, detect_platform
from .context import BuildContext
from .targets import CustomTarget, Target, TargetKind

logger = getLogger(__name__)

_LIBRARY_SUFFIXES = frozenset({".so", ".dylib", ".lib", ".a", ".dll"})


def _platform(ctx: BuildContext) -> Platform:
    tag = ctx.variables.get("IdaSdk_PLATFORM")
    return Platform(tag) if tag else detect_platform()


def _macros(definitions: typing.Iterable[str]) -> list[tuple[str, str | None]]:
    macros: list[tuple[str, str | None]] = []
    for d in definitions:
        name, sep, value = d.partition("=")
        macros.append((name, value if sep else None))
    return macros


class _LinkInputs:
    """Linker inputs collected from a target's link items."""

    def __init__(self) -> None:
        self.libraries: list[str] = []
        self.extra_objects: list[str] = []
        self.extra_link_args: list[str] = []

    def add(self, ctx: BuildContext, items: typing.Iterable[str]) -> None:
        for item in items:
            if ctx.has_target(item):
                self._add_target(ctx, ctx.get_target(item))
            elif item.startswith("-"):
                self.extra_link_args.append(item)
            elif os.sep in item or "/" in item or pathlib.Path(item).suffix in _LIBRARY_SUFFIXES:
                self.extra_objects.append(item)
            elif item not in self.libraries:
                self.libraries.append(item)

    def _add_target(self, ctx: BuildContext, target: Target | CustomTarget) -> None:
        if isinstance(target, CustomTarget):
            return
        if target.imported:
            path = target.link_file
            if path is not None and str(path) not in self.extra_objects:
                self.extra_objects.append(str(path))
        elif target.kind is TargetKind.STATIC:
            if target.name not in self.libraries:
                self.libraries.append(target.name)
            # Static libraries pass their own link items on to consumers.
            self.add(ctx, target.link_libraries)
        else:
            logger.warning(
                "Cannot link against %s target %s", target.kind.value, target.name
            )


def to_extension(ctx: BuildContext, target: Target) -> Extension:
    inputs = _LinkInputs()
    inputs.add(ctx, target.link_libraries)
    return Extension(
        target.name,
        sources=list(target.sources),
        include_dirs=[str(d) for d in target.include_directories],
        define_macros=_macros(target.compile_definitions),
        libraries=inputs.libraries,
        extra_objects=inputs.extra_objects,
        extra_compile_args=list(target.compile_options),
        extra_link_args=inputs.extra_link_args,
    )


def to_extensions(ctx: BuildContext) -> list[Extension]:
    return [
        to_extension(ctx, t)
        for t in ctx.targets
        if isinstance(t, Target)
        and not t.imported
        and t.kind in (TargetKind.MODULE, TargetKind.SHARED)
    ]


def to_libraries(ctx: BuildContext) -> list[tuple[str, dict[str, typing.Any]]]:
    """``build_clib`` entries for the STATIC targets of `ctx`."""
    return [
        (
            t.name,
            {
                "sources": list(t.sources),
                "include_dirs": [str(d) for d in t.include_directories],
                "macros": _macros(t.compile_definitions),
                "cflags": list(t.compile_options),
            },
        )
        for t in ctx.targets
        if isinstance(t, Target) and not t.imported and t.kind is TargetKind.STATIC
    ]


class IdaBuildExt(build_ext):
    """``build_ext`` for IDA modules.

    Runs the custom actions the modules depend on first, names outputs
    ``PREFIX + name + SUFFIX`` rather than with the Python extension suffix,
    and links neither Python nor a ``PyInit_`` export.
    """

    context: typing.ClassVar[BuildContext | None] = None

    def _target(self, name: str) -> Target | None:
        ctx = self.context
        if ctx is None or not ctx.has_target(name):
            return None
        target = ctx.get_target(name)
        return target if isinstance(target, Target) else None

    def pending_actions(self) -> list[CustomTarget]:
        actions: list[CustomTarget] = []
        if self.context is None:
            return actions
        for ext in self.extensions:
            if self._target(ext.name) is None:
                continue
            for action in self.context.custom_targets_for(ext.name):
                if action not in actions:
                    actions.append(action)
        return actions

    def run(self):
        for action in self.pending_actions():
            action.run(force=self.force)
        super().run()

    def get_ext_filename(self, fullname):
        target = self._target(fullname)
        if target is None:
            return super().get_ext_filename(fullname)
        platform = _platform(self.context)
        default_prefix = "" if platform is Platform.WINDOWS else "lib"
        prefix = target.properties.get("PREFIX", default_prefix)
        suffix = target.properties.get("SUFFIX", platform.module_suffix)
        *package, base = fullname.split(".")
        base = target.properties.get("OUTPUT_NAME", base)
        return os.path.join(*package, f"{prefix}{base}{suffix}")

    def get_export_symbols(self, ext):
        if self._target(ext.name) is None:
            return super().get_export_symbols(ext)
        return list(ext.export_symbols or [])

    def get_libraries(self, ext):
        if self._target(ext.name) is None:
            return super().get_libraries(ext)
        return list(ext.libraries)


class IdaInstall(Command):
    """Copy built modules and files declared with ``install()`` into place."""

    description = "install IDA modules into the IDA user directory"
    user_options = [
        ("prefix=", None, "installation prefix (default: IDAUSR or ~/.idapro)"),
        ("skip-build", None, "skip building before installing"),
    ]
    boolean_options = ["skip-build"]

    context: typing.ClassVar[BuildContext | None] = None

    def initialize_options(self):
        self.prefix = None
        self.skip_build = False

    def finalize_options(self):
        if self.prefix is None:
            self.prefix = str(default_ida_user_dir())

    def run(self):
        ctx = self.context
        if ctx is None or not ctx.install_rules:
            logger.info("Nothing to install")
            return
        if not self.skip_build:
            self.run_command("build_ext")
        build_cmd = self.get_finalized_command("build_ext")

        for rule in ctx.install_rules:
            dest = pathlib.Path(self.prefix) / rule.destination
            self.mkpath(str(dest))
            for name in rule.targets:
                target = ctx.get_target(name)
                if not isinstance(target, Target) or target.kind is TargetKind.STATIC:
                    logger.warning("Not installing %s: only modules are installed", name)
                    continue
                built = build_cmd.get_ext_fullpath(name)
                self.copy_file(built, str(dest / os.path.basename(built)))
            for f in rule.files:
                source = f if f.is_absolute() else ctx.source_dir / f
                self.copy_file(str(source), str(dest / source.name))


def cmdclass(ctx: BuildContext) -> dict[str, type[Command]]:
    """Command classes bound to `ctx`."""
    return {
        "build_ext": type("IdaBuildExt", (IdaBuildExt,), {"context": ctx}),
        "install_ida": type("IdaInstall", (IdaInstall,), {"context": ctx}),
    }


def setup_kwargs(ctx: BuildContext) -> dict[str, typing.Any]:
    """Keyword arguments for ``setuptools.setup`` describing `ctx`."""
    kwargs: dict[str, typing.Any] = {
        "ext_modules": to_extensions(ctx),
        "cmdclass": cmdclass(ctx),
    }
    libraries = to_libraries(ctx)
    if libraries:
        kwargs["libraries"] = libraries
    return kwargs
