"""
DoseKeeper Test Suite
=====================

Test Structure:
- test_services/: status taxonomy, time windows, aggregation, device registry
- test_actions/: reminder trigger planning and scheduling
- test_tools/: backend REST adapters
- conftest.py: Shared pytest fixtures

Running Tests:
    pytest
    pytest tests/test_services/
"""

TEST_DATABASE_URL = "sqlite:///:memory:"

SAMPLE_MEDICATIONS = ["Panadol", "Metformin", "Lisinopril", "Vitamin C"]

__all__ = [
    "TEST_DATABASE_URL",
    "SAMPLE_MEDICATIONS",
]
