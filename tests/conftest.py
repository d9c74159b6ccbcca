"""
Pytest Configuration and Shared Fixtures
========================================

Shared fixtures for DoseKeeper tests: an in-memory local store, intake
record builders, and mocks for the push-device backend.
"""

import os
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import init_db
from schemas.intake import IntakeRecord
from services.registry_store import RegistryStore
from tools.push_device_client import PushDeviceClient
from tests import TEST_DATABASE_URL


# ==================== LOCAL STORE FIXTURES ====================

@pytest.fixture(scope="function")
def store_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with tables created"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    init_db(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(store_engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=store_engine)


@pytest.fixture
def registry_store(session_factory: sessionmaker) -> RegistryStore:
    """Registry store backed by the in-memory engine"""
    return RegistryStore(session_factory, key="push_device_registry_test")


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def fixed_now() -> datetime:
    """A Wednesday morning, UTC"""
    return datetime(2025, 3, 12, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_record() -> Callable[..., IntakeRecord]:
    """Factory building intake records from backend-shaped fields"""
    counter = {"next_id": 1}

    def _make(status: Optional[str], **fields: Any) -> IntakeRecord:
        payload: Dict[str, Any] = {
            "id": counter["next_id"],
            "profile_id": fields.pop("profile_id", 1),
            "scheduled_time": fields.pop("scheduled_time", "2025-03-12T08:00:00Z"),
            "status": status,
        }
        payload.update(fields)
        counter["next_id"] += 1
        return IntakeRecord.model_validate(payload)

    return _make


@pytest.fixture
def mixed_records(make_record) -> List[IntakeRecord]:
    """Two taken, three missed Panadol, one skipped"""
    return [
        make_record("taken", drug_name="Metformin"),
        make_record("TAKEN", drug_name="Metformin"),
        make_record("missed", drug_name="Panadol"),
        make_record("missed", drug_name="Panadol"),
        make_record("overdue", drug_name="Panadol"),
        make_record("skipped", drug_name="Metformin"),
    ]


# ==================== MOCK FIXTURES ====================

@pytest.fixture
def mock_push_devices() -> MagicMock:
    """PushDeviceClient with async methods mocked"""
    client = MagicMock(spec=PushDeviceClient)
    client.register = AsyncMock(return_value={"id": "dev-1", "device_token": "tok-1"})
    client.list_devices = AsyncMock(return_value=[])
    client.delete = AsyncMock(return_value=None)
    return client
