"""Allow ``python -m src.cli`` execution."""

import sys

from src.cli.kpi import main

sys.exit(main())
