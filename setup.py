"""Packaging for idasdk-build.

idasdk-build itself is pure Python. Projects that build IDA plugins use it
from their own setup.py:

    from idasdk_build import BuildContext, find_ida_sdk, setup_kwargs

    ctx = BuildContext(source_dir=pathlib.Path(__file__).parent)
    sdk = find_ida_sdk(ctx)  # IdaSdk_ROOT_DIR, IDASDK_ROOT or third_party/idasdk
    sdk.add_ida_plugin("myplugin", "src/myplugin.cc")
    setup(name="myplugin", **setup_kwargs(ctx))
"""

import pathlib

from setuptools import find_packages, setup

HERE = pathlib.Path(__file__).parent


def read_version() -> str:
    init = HERE / "src" / "idasdk_build" / "__init__.py"
    for line in init.read_text(encoding="utf-8").splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__")


setup(
    name="idasdk-build",
    version=read_version(),
    description="Locate the IDA Pro SDK and build plugins and loaders with setuptools",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=["setuptools>=64"],
    extras_require={"test": ["pytest>=7"]},
    entry_points={"console_scripts": ["idasdk-build = idasdk_build.cli:main"]},
)
