"""Entry point for ``python -m logpack``."""

import sys

from logpack.cli import main

if __name__ == "__main__":
    sys.exit(main())
