"""Allow ``python -m almanac_toolkit``."""

import sys

from almanac_toolkit.cli import main

if __name__ == "__main__":
    sys.exit(main())
