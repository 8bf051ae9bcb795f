"""The configuration-time namespace that targets are declared into.

A :class:`BuildContext` plays the part of one CMake configuration run: it
owns the variables, the cache, the target registry and the install rules.
Declaring targets never compiles anything; lowering to setuptools is done by
:mod:`idasdk_build.buildsys.setuptools_ext`.
"""

from __future__ import annotations

import os
import pathlib
import typing

from ..core.errors import DuplicateTargetError, UnknownTargetError
from ..core.logging import getLogger
from .targets import CustomTarget, InstallRule, Target, TargetKind

logger = getLogger(__name__)

_SCOPE_KEYWORDS = frozenset({"PUBLIC", "PRIVATE", "INTERFACE"})

AnyTarget = typing.Union[Target, CustomTarget]


def _strip_scopes(items: typing.Iterable[typing.Any]) -> list[typing.Any]:
    return [i for i in items if not (isinstance(i, str) and i in _SCOPE_KEYWORDS)]


class BuildContext:
    """Targets, variables and install rules of one configuration run."""

    def __init__(
        self,
        source_dir: str | os.PathLike[str],
        binary_dir: str | os.PathLike[str] | None = None,
    ):
        self.source_dir = pathlib.Path(source_dir).resolve()
        self.binary_dir = (
            pathlib.Path(binary_dir).resolve()
            if binary_dir is not None
            else self.source_dir / "build"
        )
        self.variables: dict[str, typing.Any] = {}
        self.cache: dict[str, typing.Any] = {}
        self.install_rules: list[InstallRule] = []
        self._targets: dict[str, AnyTarget] = {}

    def __repr__(self) -> str:
        return (
            f"BuildContext(source_dir={self.source_dir}, "
            f"binary_dir={self.binary_dir}, targets={len(self._targets)})"
        )

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    @property
    def targets(self) -> list[AnyTarget]:
        """All targets in declaration order."""
        return list(self._targets.values())

    def has_target(self, name: str) -> bool:
        return name in self._targets

    def get_target(self, name: str) -> AnyTarget:
        try:
            return self._targets[name]
        except KeyError:
            raise UnknownTargetError(name) from None

    def _library(self, name: str) -> Target:
        target = self.get_target(name)
        if not isinstance(target, Target):
            raise UnknownTargetError(name)
        return target

    def _register(self, target: AnyTarget) -> None:
        if target.name in self._targets:
            logger.error("Target %s is already declared", target.name)
            raise DuplicateTargetError(target.name)
        self._targets[target.name] = target
        logger.debug("Declared target %s", target.name)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    def add_library(self, name: str, *args: typing.Any) -> Target:
        """Declare a library; an optional leading STATIC/SHARED/MODULE picks the kind."""
        kind = TargetKind.STATIC
        sources = list(args)
        if sources:
            keyword = TargetKind.from_keyword(sources[0])
            if keyword is not None:
                kind = keyword
                sources = sources[1:]
        target = Target(name=name, kind=kind, sources=[str(s) for s in sources])
        self._register(target)
        return target

    def add_imported_library(
        self, name: str, kind: TargetKind = TargetKind.SHARED
    ) -> Target:
        target = Target(name=name, kind=kind, imported=True)
        self._register(target)
        return target

    def add_custom_target(
        self,
        name: str,
        command: typing.Sequence[str | os.PathLike[str]],
        depends: typing.Iterable[str | os.PathLike[str]] = (),
        byproducts: typing.Iterable[str | os.PathLike[str]] = (),
    ) -> CustomTarget:
        target = CustomTarget(
            name=name,
            command=[os.fspath(c) for c in command],
            depends=[pathlib.Path(d) for d in depends],
            byproducts=[pathlib.Path(b) for b in byproducts],
        )
        self._register(target)
        return target

    def add_dependencies(self, name: str, *deps: str) -> None:
        target = self.get_target(name)
        for dep in deps:
            self.get_target(dep)
            if dep not in target.dependencies:
                target.dependencies.append(dep)

    # ------------------------------------------------------------------
    # Target settings
    # ------------------------------------------------------------------
    def target_link_libraries(self, name: str, *items: str) -> None:
        self._library(name).link_libraries.extend(
            os.fspath(i) for i in _strip_scopes(items)
        )

    def target_include_directories(
        self, name: str, *dirs: str | os.PathLike[str]
    ) -> None:
        target = self._library(name)
        for d in _strip_scopes(dirs):
            path = pathlib.Path(d)
            if not path.is_absolute():
                path = self.source_dir / path
            if path not in target.include_directories:
                target.include_directories.append(path)

    def target_compile_definitions(self, name: str, *defs: str) -> None:
        target = self._library(name)
        for d in _strip_scopes(defs):
            if d not in target.compile_definitions:
                target.compile_definitions.append(d)

    def target_compile_options(self, name: str, *options: str) -> None:
        self._library(name).compile_options.extend(_strip_scopes(options))

    def set_target_properties(self, *names: str, **properties: typing.Any) -> None:
        for name in names:
            self._library(name).properties.update(properties)

    def install(
        self,
        *,
        destination: str,
        targets: typing.Iterable[str] = (),
        files: typing.Iterable[str | os.PathLike[str]] = (),
    ) -> InstallRule:
        target_names = list(targets)
        for name in target_names:
            self._library(name)
        rule = InstallRule(
            destination=destination,
            targets=target_names,
            files=[pathlib.Path(f) for f in files],
        )
        self.install_rules.append(rule)
        return rule

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def custom_targets_for(self, name: str) -> list[CustomTarget]:
        """Custom actions `name` transitively needs, prerequisites first."""
        ordered: list[CustomTarget] = []
        seen: set[str] = set()

        def visit(current: str) -> None:
            if current in seen:
                return
            seen.add(current)
            target = self._targets[current]
            edges = list(target.dependencies)
            if isinstance(target, Target):
                edges += [l for l in target.link_libraries if l in self._targets]
            for dep in edges:
                visit(dep)
            if isinstance(target, CustomTarget):
                ordered.append(target)

        self.get_target(name)
        visit(name)
        return ordered
