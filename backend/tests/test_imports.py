"""Each public module imports cleanly on its own, in a fresh interpreter."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1]


@pytest.mark.parametrize("module", [
    "specdrive.services.report_store",
    "specdrive.services.redis_store",
    "specdrive.services.store",
    "specdrive.validators",
    "specdrive.validators.engine",
    "specdrive.traceability",
    "specdrive.orchestrator",
    "specdrive.synthesis",
    "specdrive.main",
])
def test_module_imports_first(module):
    env = dict(os.environ, PYTHONPATH=str(BACKEND_DIR))
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=BACKEND_DIR,
        env=env,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
