#!/usr/bin/env python3
"""``ripen`` bake runner.

Usage:
    python scripts/run_bake.py scripts/user_config.py
    python scripts/run_bake.py scripts/user_config.py --image dawn.png
    python scripts/run_bake.py scripts/user_config.py --interval-sec 5 --rerun

Note: User config in scripts/user_config.py, expert defaults in ripen.schemas.param
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from ripen.cli.run_bake import main


if __name__ == "__main__":
    sys.exit(main())
