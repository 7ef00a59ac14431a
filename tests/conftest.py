"""Pytest configuration and shared fixtures for HexGlobe tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest


# Add project root to path so imports work
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sphere_engine.hexsphere import HexSphere  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s [%(levelname)s] %(message)s",
    )


@pytest.fixture(scope="session")
def sphere_d2() -> HexSphere:
    """Unit sphere at depth 2 (162 tiles), shared across tests."""
    return HexSphere(radius=1.0, subdivisions=2)


@pytest.fixture(scope="session")
def sphere_d3() -> HexSphere:
    """Unit sphere at depth 3 (642 tiles), shared across tests."""
    return HexSphere(radius=1.0, subdivisions=3)
