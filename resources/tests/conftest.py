"""Pytest configuration for resources/tests.

Ensures the repository root and ``src`` are on sys.path so tests can import
``edwin`` and helpers via absolute package path like `resources.tests.helpers`.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
for path in (ROOT, ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
