"""Allow running as ``python -m simple_database``."""

import sys

from simple_database.cli import main

if __name__ == "__main__":
    sys.exit(main())
