"""Pytest configuration for dashboard-service tests.

Puts the service's src directory and the shared services root on sys.path so
tests import modules the same way main.py does.
"""

import sys
from pathlib import Path

SERVICE_SRC = Path(__file__).resolve().parents[1] / "src"
SERVICES_ROOT = Path(__file__).resolve().parents[2]

for path in (SERVICES_ROOT, SERVICE_SRC):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
