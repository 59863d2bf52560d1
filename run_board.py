"""Convenience launcher for the board generator.

Usage:
  python run_board.py -j "project = MYPROJ AND statusCategory != Done" -s "project = MYPROJ"

Equivalent to the ``aging-wip`` console script installed with the package.
"""

import sys

from aging_wip.cli import main

if __name__ == "__main__":
    sys.exit(main())
