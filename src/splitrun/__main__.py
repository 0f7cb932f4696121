"""Allow running splitrun with ``python -m splitrun``."""

import sys

from splitrun.cli import main


sys.exit(main())
