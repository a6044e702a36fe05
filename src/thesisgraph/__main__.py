"""Allow running as `python -m thesisgraph`."""

import sys

from thesisgraph.cli import main

sys.exit(main())
