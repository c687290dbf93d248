"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from realtor_tools.main import app
from realtor_tools.calculations.cma import CMAInput, Comparable


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def comparables():
    """Three recent nearby sales around $250/sf."""
    return [
        Comparable(sale_price=450000, square_footage=1800, address="12 Oak St"),
        Comparable(sale_price=500000, square_footage=2000, address="48 Elm St"),
        Comparable(sale_price=520000, square_footage=2000, address="7 Pine Ct"),
    ]


@pytest.fixture
def cma_input(comparables):
    return CMAInput(square_footage=1900, comparables=comparables)
