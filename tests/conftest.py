import sys
from pathlib import Path

# Ensure the project root is on sys.path so `algebra` and `backend` are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from algebra.budget import Budget
from algebra.config import DEFAULT_OPTIONS


@pytest.fixture
def budget() -> Budget:
    return Budget(DEFAULT_OPTIONS)
