"""
Root pytest configuration.

Makes the packages under src/ (rbac, domain, config, database, workflow,
web) importable without installing the project.
"""

import sys
from pathlib import Path

SRC_DIR = str((Path(__file__).parent / "src").resolve())

if SRC_DIR in sys.path:
    sys.path.remove(SRC_DIR)
sys.path.insert(0, SRC_DIR)
