"""
Pytest configuration and shared fixtures for the contract expiry tests.
"""
from datetime import datetime

import pytest


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests that only exercise in-process logic")
    config.addinivalue_line("markers", "integration: Tests that read or write real workbook files")


@pytest.fixture
def reference_date() -> datetime:
    """Fixed processing moment: 2024-01-01 00:00"""
    return datetime(2024, 1, 1)


@pytest.fixture
def sample_rows():
    """Rows covering day-first text, a serial number and every bucket but >180 days"""
    return [
        {"Contract": "Acme Hosting", "Expiry": "15-01-2024", "Owner": "Ops"},
        {"Contract": "Beta Licences", "Expiry": "01-06-2024", "Owner": "IT"},
        {"Contract": "Gamma Lease", "Expiry": "01-01-2023", "Owner": "Facilities"},
        {"Contract": "Delta Support", "Expiry": 44562, "Owner": "IT"},
    ]


@pytest.fixture
def mixed_rows():
    """One row per bucket, out of days-left order"""
    return [
        {"Contract": "Long Term", "Expiry": "2025-06-30"},
        {"Contract": "Soon", "Expiry": "20/01/2024"},
        {"Contract": "Old", "Expiry": "10/10/2023"},
        {"Contract": "Mid", "Expiry": "2024-05-01"},
        {"Contract": "Sooner", "Expiry": "05-01-2024"},
        {"Contract": "Older", "Expiry": 44927},
    ]


@pytest.fixture
def fixed_clock(reference_date):
    """Clock that counts how often it is read"""

    class Clock:
        def __init__(self):
            self.calls = 0

        def __call__(self):
            self.calls += 1
            return reference_date

    return Clock()
