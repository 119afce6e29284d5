"""
Global test configuration for throttled_queue.

Ensures ``src/`` is on *sys.path* so the tests run against the working tree
without installing the package.
"""

import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
