import dataclasses
import json
import os
import pathlib
import sys
import typing

from .logging import getLogger

if typing.TYPE_CHECKING:
    from ..buildsys.context import BuildContext

logger = getLogger(__name__)


def default_ida_user_dir(environ: typing.Mapping[str, str] | None = None) -> pathlib.Path:
    """Return the IDA user directory that plugins are installed under.

    ``IDAUSR`` wins when set (first entry of the path list). Otherwise:
    - Windows: %APPDATA%/Hex-Rays/IDA Pro
    - Linux/Mac: $HOME/.idapro
    """
    env = os.environ if environ is None else environ
    idausr = env.get("IDAUSR")
    if idausr:
        return pathlib.Path(idausr.split(os.pathsep)[0])
    if sys.platform == "win32":
        appdata = env.get("APPDATA")
        if appdata:
            return pathlib.Path(appdata) / "Hex-Rays" / "IDA Pro"
        return pathlib.Path.home() / "AppData" / "Roaming" / "Hex-Rays" / "IDA Pro"
    else:
        return pathlib.Path.home() / ".idapro"


@dataclasses.dataclass(frozen=True, slots=True)
class ConfigConstants:
    OPTIONS_FILENAME: typing.ClassVar[str] = "idasdk.json"
    # Context variable holding the explicit SDK root override.
    ROOT_DIR_VARIABLE: typing.ClassVar[str] = "IdaSdk_ROOT_DIR"
    ROOT_ENV_VARIABLE: typing.ClassVar[str] = "IDASDK_ROOT"
    MARKER_HEADER: typing.ClassVar[str] = "include/pro.h"
    PATH_SUFFIX: typing.ClassVar[str] = "idasdk"
    FALLBACK_PATH: typing.ClassVar[str] = "third_party/idasdk"

    LIBDIR_MAC_X64: typing.ClassVar[str] = "x64_mac_clang_64"
    LIBDIR_MAC_ARM64: typing.ClassVar[str] = "arm64_mac_clang_64"
    LIBDIR_LINUX: typing.ClassVar[str] = "x64_linux_gcc_64"
    LIBDIR_WINDOWS: typing.ClassVar[str] = "x64_win_vc_64"

    PLUGIN_EXPORTS: typing.ClassVar[str] = "plugins/exports.def"
    LOADER_EXPORTS: typing.ClassVar[str] = "ldr/exports.def"

    UNIVERSAL_LIB_NAME: typing.ClassVar[str] = "libida64_universal.dylib"
    MERGE_TOOL: typing.ClassVar[str] = "lipo"

    @staticmethod
    def default_options_file(source_dir: pathlib.Path) -> pathlib.Path:
        return source_dir / ConfigConstants.OPTIONS_FILENAME


class BuildConfiguration:
    """
    Build options read from a project's JSON options file.

    Recognised keys are ``root_dir``, ``build_dir``, ``log_dir`` and
    ``log_level``. Other keys are ignored.

    >>> import tempfile
    >>> temp_dir = tempfile.TemporaryDirectory()
    >>> config_path = pathlib.Path(temp_dir.name) / "idasdk.json"
    >>> config_path.write_text('{"root_dir": "/opt/idasdk"}')
    27
    >>> config = BuildConfiguration(config_path)
    >>> str(config.root_dir)
    '/opt/idasdk'
    >>> config.log_level
    'INFO'
    >>> temp_dir.cleanup()
    """

    def __init__(self, config_path: pathlib.Path | str):
        self.config_file = pathlib.Path(config_path)
        self._options: dict[str, typing.Any] = {}
        self._load()

    @classmethod
    def for_source_dir(cls, source_dir: pathlib.Path | str) -> "BuildConfiguration":
        return cls(ConfigConstants.default_options_file(pathlib.Path(source_dir)))

    def _load(self) -> None:
        """Loads configuration from the JSON file, handling potential errors."""
        try:
            with self.config_file.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
        except FileNotFoundError:
            logger.debug("Configuration file %s not found", self.config_file)
            return
        except json.JSONDecodeError as e:
            logger.error("Failed to parse config file %s: %s", self.config_file, e)
            return

        if not isinstance(data, dict):
            logger.error("Config file %s must hold a JSON object", self.config_file)
            return
        self._options = data
        logger.info("Loaded configuration from %s", self.config_file)

    def _path(self, key: str) -> pathlib.Path | None:
        value = self._options.get(key)
        if not value:
            return None
        path = pathlib.Path(value).expanduser()
        # Relative paths are relative to the options file.
        if not path.is_absolute():
            path = self.config_file.parent / path
        return path

    @property
    def root_dir(self) -> pathlib.Path | None:
        return self._path("root_dir")

    @property
    def build_dir(self) -> pathlib.Path | None:
        return self._path("build_dir")

    @property
    def log_dir(self) -> pathlib.Path | None:
        return self._path("log_dir")

    @property
    def log_level(self) -> str:
        return str(self._options.get("log_level", "INFO")).upper()

    def apply(self, ctx: "BuildContext") -> None:
        """Seed `ctx` with the SDK root override unless one is already set."""
        root = self.root_dir
        if root is not None and not ctx.variables.get(
            ConfigConstants.ROOT_DIR_VARIABLE
        ):
            ctx.variables[ConfigConstants.ROOT_DIR_VARIABLE] = root
