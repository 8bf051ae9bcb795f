"""Target, custom action and install rule types of the build model."""

from __future__ import annotations

import dataclasses
import enum
import pathlib
import subprocess
import typing

from ..core.logging import getLogger

logger = getLogger(__name__)


class TargetKind(enum.Enum):
    STATIC = "STATIC"
    SHARED = "SHARED"
    MODULE = "MODULE"

    @classmethod
    def from_keyword(cls, word: typing.Any) -> "TargetKind | None":
        """Return the kind named by `word`, or None if it is not a kind keyword."""
        if isinstance(word, str):
            try:
                return cls(word)
            except ValueError:
                return None
        return None


@dataclasses.dataclass(slots=True)
class Target:
    """A library or module target.

    Imported targets are never compiled; they point at a prebuilt file through
    ``imported_location`` (and ``imported_implib`` for Windows import
    libraries).
    """

    name: str
    kind: TargetKind
    sources: list[str] = dataclasses.field(default_factory=list)
    imported: bool = False
    imported_location: pathlib.Path | None = None
    imported_implib: pathlib.Path | None = None
    compile_definitions: list[str] = dataclasses.field(default_factory=list)
    compile_options: list[str] = dataclasses.field(default_factory=list)
    include_directories: list[pathlib.Path] = dataclasses.field(default_factory=list)
    link_libraries: list[str] = dataclasses.field(default_factory=list)
    dependencies: list[str] = dataclasses.field(default_factory=list)
    properties: dict[str, typing.Any] = dataclasses.field(default_factory=dict)

    @property
    def link_file(self) -> pathlib.Path | None:
        """File a consumer links against when this target is imported."""
        return self.imported_implib or self.imported_location


@dataclasses.dataclass(slots=True)
class CustomTarget:
    """A build action that always has a command to run."""

    name: str
    command: list[str]
    depends: list[pathlib.Path] = dataclasses.field(default_factory=list)
    byproducts: list[pathlib.Path] = dataclasses.field(default_factory=list)
    dependencies: list[str] = dataclasses.field(default_factory=list)

    def is_stale(self) -> bool:
        """True unless every byproduct exists and is newer than every input."""
        if not self.byproducts:
            return True
        try:
            oldest = min(p.stat().st_mtime for p in self.byproducts)
        except FileNotFoundError:
            return True
        for dep in self.depends:
            try:
                if dep.stat().st_mtime > oldest:
                    return True
            except FileNotFoundError:
                return True
        return False

    def run(self, force: bool = False) -> bool:
        """Run the command if needed. Returns True if it was run."""
        if not force and not self.is_stale():
            logger.debug("%s is up to date", self.name)
            return False
        for product in self.byproducts:
            product.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Running %s: %s", self.name, " ".join(self.command))
        subprocess.run(self.command, check=True)
        return True


@dataclasses.dataclass(slots=True)
class InstallRule:
    destination: str
    targets: list[str] = dataclasses.field(default_factory=list)
    files: list[pathlib.Path] = dataclasses.field(default_factory=list)
