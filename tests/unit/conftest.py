"""Fixtures that lay out fake IDA SDK trees."""

import pathlib

import pytest

from idasdk_build.buildsys import BuildContext

LIBRARY_FILES = {
    "Darwin": ("lib/x64_mac_clang_64/libida.dylib", "lib/arm64_mac_clang_64/libida.dylib"),
    "Linux": ("lib/x64_linux_gcc_64/libida.so",),
    "Windows": ("lib/x64_win_vc_64/ida.lib",),
}


def make_sdk(
    root: pathlib.Path, systems: tuple[str, ...] = ("Darwin", "Linux", "Windows")
) -> pathlib.Path:
    """Create a minimal SDK under `root` with libraries for `systems`."""
    (root / "include").mkdir(parents=True, exist_ok=True)
    (root / "include" / "pro.h").write_text("// marker\n")
    for sub in ("plugins", "ldr"):
        (root / sub).mkdir(exist_ok=True)
        (root / sub / "exports.def").write_text("{ global: PLUGIN, LDSC; local: *; };\n")
    for system in systems:
        for rel in LIBRARY_FILES[system]:
            lib = root / rel
            lib.parent.mkdir(parents=True, exist_ok=True)
            lib.write_bytes(b"\0")
    return root


@pytest.fixture
def sdk_root(tmp_path: pathlib.Path) -> pathlib.Path:
    return make_sdk(tmp_path / "idasdk90").resolve()


@pytest.fixture
def project_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def ctx(project_dir: pathlib.Path) -> BuildContext:
    return BuildContext(project_dir)


@pytest.fixture
def sdk_factory():
    """Return :func:`make_sdk` for tests that need several SDK trees."""
    return make_sdk
