"""Command line probe for the IDA SDK configuration.

    idasdk-build probe --root ~/idasdk90
    idasdk-build probe --system Darwin --json

Runs the same discovery and library resolution ``find_ida_sdk`` performs and
prints what it found. Exits with status 1 and the error message when the
configuration would fail.
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
import typing

from .buildsys.context import BuildContext
from .core.config import BuildConfiguration
from .core.errors import IdaSdkError
from .core.logging import configure_loggers, getLogger
from .ida import find_ida_sdk

logger = getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idasdk-build",
        description="Locate and inspect an IDA SDK installation.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    probe = sub.add_parser("probe", help="locate the SDK and print its settings")
    probe.add_argument("--root", help="explicit SDK root (IdaSdk_ROOT_DIR)")
    probe.add_argument(
        "--source-dir",
        default=".",
        help="project directory holding third_party/idasdk (default: .)",
    )
    probe.add_argument("--build-dir", help="binary directory (default: <source>/build)")
    probe.add_argument(
        "--system", help="host system name to configure for, e.g. Darwin"
    )
    probe.add_argument(
        "--config", help="JSON options file (default: <source>/idasdk.json)"
    )
    probe.add_argument("--json", action="store_true", help="print JSON")
    probe.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    probe.add_argument("--log-dir", help="also write a log file here")
    return parser


def probe(args: argparse.Namespace) -> dict[str, typing.Any]:
    source_dir = pathlib.Path(args.source_dir)
    config = (
        BuildConfiguration(args.config)
        if args.config
        else BuildConfiguration.for_source_dir(source_dir)
    )
    configure_loggers(
        args.log_dir or config.log_dir, level=args.log_level or config.log_level
    )

    ctx = BuildContext(source_dir, args.build_dir or config.build_dir)
    config.apply(ctx)
    sdk = find_ida_sdk(ctx, args.root, system_name=args.system)

    result: dict[str, typing.Any] = {
        "root": str(sdk.root),
        "include_dirs": [str(d) for d in sdk.include_dirs],
        "platform": sdk.platform.tag,
        "library": str(sdk.imported.imported_location),
        "variables": {
            k: str(v)
            for k, v in ctx.variables.items()
            if k.startswith("IdaSdk_LIB")
        },
        "targets": [t.name for t in ctx.targets],
    }
    return result


def _print_text(result: dict[str, typing.Any]) -> None:
    print(f"IDA SDK:        {result['root']}")
    print(f"Include dirs:   {', '.join(result['include_dirs'])}")
    print(f"Platform tag:   {result['platform']}")
    print(f"ida64 library:  {result['library']}")
    for name, value in sorted(result["variables"].items()):
        print(f"{name + ':':<16}{value}")
    print(f"Targets:        {', '.join(result['targets'])}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        result = probe(args)
    except IdaSdkError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        _print_text(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
