"""CLI helper that reports how the IDA SDK in this checkout resolves."""

from __future__ import annotations

import sys

from idasdk_build.cli import main

if __name__ == "__main__":
    sys.exit(main(["probe", *sys.argv[1:]]))
