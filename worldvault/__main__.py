"""Allow ``python -m worldvault``."""

import sys

from worldvault.cli import main

sys.exit(main())
