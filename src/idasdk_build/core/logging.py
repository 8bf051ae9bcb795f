import collections
import dataclasses
import logging
import logging.config
import pathlib
import threading
import typing

from .errors import InvalidLogLevelError

LOG_FILENAME = "idasdk_build.log"
ROOT_LOGGER_NAME = "IdaSdk"

_config = collections.Counter(version=0)


@dataclasses.dataclass(slots=True)
class LevelFlag:
    """
    LevelFlag provides a cached boolean check for whether a logger is enabled
    for a given level, refreshed whenever the logging configuration changes.

    Example:
        logger = getLogger("idasdk_build.discovery")
        debug_on = LevelFlag(logger.name, logging.DEBUG)

        for candidate in candidates:
            if debug_on:
                logger.debug("probing %s", candidate)
    """

    _logger_name: str
    _level: int
    _last_version: int = dataclasses.field(default=-1, init=False)
    _cached: bool = dataclasses.field(default=False, init=False)

    def __bool__(self) -> bool:
        current = self.get_config_version()
        if self._last_version != current:
            self._cached = getLogger(self._logger_name).isEnabledFor(self._level)
            self._last_version = current
        return self._cached

    def __repr__(self):
        lvlname = logging.getLevelName(self._level)
        return f"<LevelFlag {self._logger_name}≥{lvlname}>"

    @staticmethod
    def bump_config_version() -> None:
        _config["version"] += 1

    @staticmethod
    def get_config_version() -> int:
        return _config["version"]


class IdaSdkLogger(logging.Logger):
    """Logger that supports a per-thread Mapped Diagnostic Context (MDC)."""

    _mdc_local: "threading.local" = threading.local()

    @classmethod
    def mdc(cls) -> typing.Mapping[str, typing.Any]:
        if not getattr(cls._mdc_local, "mdc", None):
            cls.set_mdc({"target": ""})
        return getattr(cls._mdc_local, "mdc", {})

    @classmethod
    def set_mdc(cls, d: dict[str, typing.Any]) -> None:
        cls._mdc_local.mdc = d

    # Store the target currently being configured so that every record
    # emitted while declaring it carries its name.
    @classmethod
    def update_target(cls, target: str) -> None:
        cls.set_mdc({**cls.mdc(), "target": target})

    @classmethod
    def reset_target(cls) -> None:
        cls.set_mdc({**cls.mdc(), "target": ""})

    def makeRecord(
        self,
        name,
        level,
        fn,
        lno,
        msg,
        args,
        exc_info,
        func=None,
        extra: dict[str, typing.Any] | None = None,
        sinfo=None,
    ):
        """Inject the current MDC into every ``LogRecord`` that we create."""
        if not extra:
            extra = {}
        extra.update(self.mdc())
        return super().makeRecord(
            name,
            level,
            fn,
            lno,
            msg,
            args,
            exc_info,
            func=func,
            extra=extra,
            sinfo=sinfo,
        )


class IdaSdkFormatter(logging.Formatter):
    """Formatter that renders the MDC target as `` - <target>`` when set."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        target = getattr(record, "target", "")
        if target:
            record.target = f" - {target}"
        else:
            record.target = ""

        return super().format(record)


# The file handler is only added by `configure_loggers` when a log directory
# is given.
conf: dict[str, typing.Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "IdaSdkFormatter": {
            "()": IdaSdkFormatter,
            "format": "%(asctime)s - %(name)s - %(levelname)s%(target)s - %(message)s",
        },
    },
    "handlers": {
        "consoleHandler": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "IdaSdkFormatter",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        ROOT_LOGGER_NAME: {
            "level": "INFO",
            "handlers": ["consoleHandler"],
            "propagate": False,
        },
        "idasdk_build": {
            "level": "INFO",
            "handlers": ["consoleHandler"],
            "propagate": False,
        },
    },
}


class LoggerConfigurator:
    """
    Utility to dynamically query and set logger levels at runtime.
    """

    @staticmethod
    def available_loggers(
        prefix: str | typing.Iterable[str] | None = None,
    ) -> list[str]:
        """
        Return a deduped, sorted list of all logger names, with optional prefix filtering.

        - Any module that did getLogger(__name__) shows up.
        - Any logger statically declared in conf["loggers"] shows up.
        - If `prefix` is provided, filter to names equal to or starting with prefix + '.'.
        """
        mgr = logging.Logger.manager
        dyn = {
            name
            for name, logger in mgr.loggerDict.items()
            if isinstance(logger, logging.Logger)
        }
        all_names = dyn | set(conf["loggers"].keys())

        if prefix is None:
            return sorted(all_names)

        prefixes = [prefix] if isinstance(prefix, str) else list(prefix)

        def match(name: str) -> bool:
            return any(name == p or name.startswith(p + ".") for p in prefixes)

        return sorted(filter(match, all_names))

    @staticmethod
    def set_level(logger_name: str, level_name: str) -> None:
        """
        Change the level for `logger_name` to one of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        """
        lvl = level_number(level_name)
        getLogger(logger_name, lvl).setLevel(lvl)
        LevelFlag.bump_config_version()


def level_number(level: str) -> int:
    """Return the numeric value of the level named `level`."""
    lvl = logging.getLevelName(str(level).upper())
    if not isinstance(lvl, int):
        raise InvalidLogLevelError(level)
    return lvl


def configure_loggers(
    log_dir: str | pathlib.Path | None = None, level: str = "INFO"
) -> None:
    """
    Configures the loggers from `conf`, adding a file handler in `log_dir`
    when one is given.
    """
    lvl = level_number(level)
    cfg = {
        **conf,
        "handlers": dict(conf["handlers"]),
        "loggers": {k: dict(v) for k, v in conf["loggers"].items()},
    }
    handlers = ["consoleHandler"]
    if log_dir is not None:
        log_dir = pathlib.Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        cfg["handlers"]["defaultFileHandler"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "IdaSdkFormatter",
            "filename": (log_dir / LOG_FILENAME).as_posix(),
        }
        handlers.append("defaultFileHandler")

    for logger_conf in cfg["loggers"].values():
        logger_conf["level"] = lvl
        logger_conf["handlers"] = list(handlers)

    logging.config.dictConfig(cfg)
    # Module loggers created before configuration keep their own level, and
    # the ones swapped in by getLogger() missed the parent fix-up.
    for name in LoggerConfigurator.available_loggers(list(cfg["loggers"])):
        existing = logging.getLogger(name)
        existing.setLevel(lvl)
        if name not in cfg["loggers"]:
            existing.parent = _nearest_parent(name)
    LevelFlag.bump_config_version()


def _nearest_parent(name: str) -> logging.Logger:
    loggers = logging.Logger.manager.loggerDict
    while "." in name:
        name = name.rpartition(".")[0]
        candidate = loggers.get(name)
        if isinstance(candidate, logging.Logger):
            return candidate
    return logging.getLogger()


def getLogger(name: str, default_level: int = logging.INFO) -> IdaSdkLogger:
    """Return an :class:`IdaSdkLogger`.

    When wrapping an existing logger whose ``propagate`` flag is *False*
    **and** that has **no handlers**, the record would be lost.  We flip
    ``propagate`` back to *True* so that messages bubble to the root
    handlers.
    """

    name = name or __name__
    base = logging.getLogger(name)
    if isinstance(base, IdaSdkLogger):
        return base
    loglvl = base.level
    if loglvl == logging.NOTSET or loglvl < default_level:
        loglvl = default_level
    new = IdaSdkLogger(base.name, level=loglvl)
    new.handlers = list(base.handlers)
    new.filters = list(base.filters)
    new.propagate = base.propagate
    new.disabled = base.disabled
    # Keep the hierarchical parent so records still reach root handlers.
    new.parent = base.parent
    if not new.handlers and not new.propagate:
        new.propagate = True

    # Replace it in the manager so future getLogger(...) calls return the subclass.
    logging.Logger.manager.loggerDict[name] = new
    return new
