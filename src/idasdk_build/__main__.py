import sys

from idasdk_build.cli import main

sys.exit(main())
