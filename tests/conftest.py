# ruff: noqa: INP001
"""Pytest configuration shared across taskboard tests."""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; pin them so the shell env cannot leak in.
os.environ["TASKBOARD_ENVIRONMENT"] = "test"
os.environ["TASKBOARD_PERSISTENCE_BACKEND"] = "memory"
os.environ["TASKBOARD_STRICT_COLUMN_CAPACITY"] = "3"
os.environ["TASKBOARD_DEFAULT_BOARD_MODE"] = "freelancer"
os.environ["TASKBOARD_LOG_FORMAT"] = "text"
