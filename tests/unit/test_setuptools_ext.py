"""Tests for lowering a BuildContext onto setuptools."""

import os
import subprocess

import pytest
from setuptools import Extension
from setuptools.command.build_ext import build_ext
from setuptools.dist import Distribution

from idasdk_build.buildsys.setuptools_ext import (
    IdaBuildExt,
    IdaInstall,
    setup_kwargs,
    to_extensions,
    to_libraries,
)
from idasdk_build.ida import find_ida_sdk


def _distribution(ctx, tmp_path):
    kwargs = setup_kwargs(ctx)
    dist = Distribution({"name": "myplugin", "script_name": "setup.py", **kwargs})
    cmd = dist.get_command_obj("build_ext")
    cmd.build_lib = str(tmp_path / "build_lib")
    cmd.build_temp = str(tmp_path / "build_temp")
    cmd.ensure_finalized()
    return dist, cmd


@pytest.fixture
def linux_sdk(ctx, sdk_root):
    return find_ida_sdk(ctx, sdk_root, system_name="Linux", environ={})


class TestLowering:

    def test_plugin_extension(self, ctx, linux_sdk, sdk_root):
        linux_sdk.add_ida_plugin("myplugin", "src/plugin.cc")
        (ext,) = to_extensions(ctx)
        assert isinstance(ext, Extension)
        assert ext.name == "myplugin"
        assert ext.sources == ["src/plugin.cc"]
        assert ext.include_dirs == [str(sdk_root / "include")]
        assert ("__LINUX__", None) in ext.define_macros
        assert ("__EA64__", None) in ext.define_macros
        assert ext.extra_objects == [str(sdk_root / "lib/x64_linux_gcc_64/libida.so")]
        assert ext.extra_link_args == [
            f"-Wl,--version-script,{sdk_root / 'plugins' / 'exports.def'}"
        ]
        assert ext.extra_compile_args == ["-Wno-non-virtual-dtor", "-Wno-varargs"]

    def test_windows_links_import_library(self, ctx, sdk_root):
        sdk = find_ida_sdk(ctx, sdk_root, system_name="Windows", environ={})
        sdk.add_ida_loader("myldr", "ldr.cc")
        (ext,) = to_extensions(ctx)
        assert ext.extra_objects == [str(sdk_root / "lib/x64_win_vc_64/ida.lib")]
        assert ext.extra_link_args == []

    def test_mac_links_universal_library(self, ctx, sdk_root):
        sdk = find_ida_sdk(ctx, sdk_root, system_name="Darwin", environ={})
        sdk.add_ida_plugin("myplugin", "p.cc")
        (ext,) = to_extensions(ctx)
        assert ext.extra_objects == [str(ctx.binary_dir / "libida64_universal.dylib")]
        assert "-Wl,-flat_namespace" in ext.extra_link_args

    def test_static_library_entries(self, ctx, linux_sdk):
        linux_sdk.add_ida_library("util", "util.cc")
        ctx.target_compile_definitions("util", "VERSION=2")
        plugin = linux_sdk.add_ida_plugin("myplugin", "p.cc")
        ctx.target_link_libraries("myplugin", "util", "dl")

        ((name, info),) = to_libraries(ctx)
        assert name == "util"
        assert info["sources"] == ["util.cc"]
        assert ("VERSION", "2") in info["macros"]
        (ext,) = to_extensions(ctx)
        assert ext.libraries == ["util", "dl"]
        assert plugin.name == ext.name

    def test_setup_kwargs_omits_empty_libraries(self, ctx, linux_sdk):
        linux_sdk.add_ida_plugin("myplugin", "p.cc")
        kwargs = setup_kwargs(ctx)
        assert "libraries" not in kwargs
        assert set(kwargs["cmdclass"]) == {"build_ext", "install_ida"}
        assert issubclass(kwargs["cmdclass"]["build_ext"], IdaBuildExt)
        assert issubclass(kwargs["cmdclass"]["install_ida"], IdaInstall)
        assert kwargs["cmdclass"]["build_ext"].context is ctx


class TestIdaBuildExt:

    def test_module_file_name(self, ctx, linux_sdk, tmp_path):
        linux_sdk.add_ida_plugin("myplugin", "p.cc")
        _, cmd = _distribution(ctx, tmp_path)
        assert cmd.get_ext_filename("myplugin") == "myplugin.so"
        assert cmd.get_ext_fullpath("myplugin") == os.path.join(
            str(tmp_path / "build_lib"), "myplugin.so"
        )

    def test_suffix_property_and_windows(self, ctx, sdk_root, tmp_path):
        sdk = find_ida_sdk(ctx, sdk_root, system_name="Windows", environ={})
        sdk.add_ida_plugin("a", "a.cc")
        sdk.add_ida_plugin("b", "b.cc")
        sdk.set_ida_target_properties("b", SUFFIX=".dll64")
        _, cmd = _distribution(ctx, tmp_path)
        assert cmd.get_ext_filename("a") == "a.dll"
        assert cmd.get_ext_filename("b") == "b.dll64"

    def test_output_name_property(self, ctx, linux_sdk, tmp_path):
        linux_sdk.add_ida_plugin("myplugin", "p.cc")
        linux_sdk.set_ida_target_properties("myplugin", OUTPUT_NAME="myplugin64")
        _, cmd = _distribution(ctx, tmp_path)
        assert cmd.get_ext_filename("myplugin") == "myplugin64.so"
        assert cmd.get_ext_fullpath("myplugin").endswith("myplugin64.so")

    def test_no_python_exports_or_libraries(self, ctx, linux_sdk, tmp_path):
        linux_sdk.add_ida_plugin("myplugin", "p.cc")
        dist, cmd = _distribution(ctx, tmp_path)
        (ext,) = dist.ext_modules
        assert cmd.get_export_symbols(ext) == []
        assert cmd.get_libraries(ext) == []

    def test_runs_merge_before_building(self, ctx, sdk_root, tmp_path, monkeypatch):
        sdk = find_ida_sdk(ctx, sdk_root, system_name="Darwin", environ={})
        sdk.add_ida_plugin("p1", "p1.cc")
        sdk.add_ida_loader("l1", "l1.cc")

        events = []
        monkeypatch.setattr(
            subprocess, "run", lambda cmd, check: events.append(("run", cmd[0]))
        )
        monkeypatch.setattr(build_ext, "run", lambda self: events.append(("build",)))

        _, cmd = _distribution(ctx, tmp_path)
        assert [a.name for a in cmd.pending_actions()] == ["ida64_universal"]
        cmd.run()
        assert events == [("run", "lipo"), ("build",)]


class TestIdaInstall:

    def test_copies_built_module(self, ctx, linux_sdk, tmp_path, project_dir):
        linux_sdk.add_ida_plugin("myplugin", "p.cc")
        (project_dir / "myplugin.cfg").write_text("x")
        linux_sdk.ida_install(targets=["myplugin"], destination="plugins")
        linux_sdk.ida_install(files=["myplugin.cfg"], destination="cfg")

        dist, build_cmd = _distribution(ctx, tmp_path)
        built = build_cmd.get_ext_fullpath("myplugin")
        os.makedirs(os.path.dirname(built), exist_ok=True)
        with open(built, "wb") as fp:
            fp.write(b"\x7fELF")

        install = dist.get_command_obj("install_ida")
        install.prefix = str(tmp_path / "idausr")
        install.skip_build = True
        install.ensure_finalized()
        install.run()

        assert (tmp_path / "idausr" / "plugins" / "myplugin.so").read_bytes() == b"\x7fELF"
        assert (tmp_path / "idausr" / "cfg" / "myplugin.cfg").read_text() == "x"

    def test_default_prefix_from_idausr(self, ctx, linux_sdk, tmp_path, monkeypatch):
        monkeypatch.setenv("IDAUSR", str(tmp_path / "custom"))
        dist, _ = _distribution(ctx, tmp_path)
        install = dist.get_command_obj("install_ida")
        install.ensure_finalized()
        assert install.prefix == str(tmp_path / "custom")
