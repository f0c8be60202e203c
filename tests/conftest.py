from __future__ import annotations

import random

import pytest
from hypothesis import settings

# ---- Deterministic Testing Configuration ---------------------

# Global deterministic seed
DETERMINISTIC_SEED = 42


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "hypothesis: property-based tests")


@pytest.fixture(autouse=True)
def set_deterministic_seed():
    """Set deterministic seed for all tests"""
    random.seed(DETERMINISTIC_SEED)
    yield
    random.seed()


# Hypothesis settings for all property-based tests
settings.register_profile(
    "deterministic",
    deadline=None,
    max_examples=200,
    derandomize=False,
    database=None,
)
settings.load_profile("deterministic")
