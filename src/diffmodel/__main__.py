"""Main entry point for `python -m diffmodel`."""

import sys

from diffmodel.diff_cli import main


if __name__ == '__main__':
    sys.exit(main())
