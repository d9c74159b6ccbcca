"""
Registry Store
App-private key/value persistence for the device registration cache
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from config import settings
from database import SessionLocal, session_scope
import models
from schemas.device import DeviceRegistration


logger = logging.getLogger(__name__)


class RegistryStore:
    """
    Reads and writes the single DeviceRegistration record under one key.

    Each call runs in its own transaction, so a write either lands whole or
    not at all.
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        key: Optional[str] = None
    ):
        self.session_factory = session_factory or SessionLocal
        self.key = key or settings.DEVICE_REGISTRY_KEY

    def read(self) -> Optional[DeviceRegistration]:
        """Cached registration, or None when absent or unreadable"""
        with session_scope(self.session_factory) as db:
            entry = db.get(models.LocalStoreEntry, self.key)
            raw = entry.value if entry else None

        if raw is None:
            return None

        try:
            return DeviceRegistration.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            # Cache is a hint only; a corrupt entry reads as empty
            logger.warning(f"Ignoring unreadable device registration cache: {e}")
            return None

    def write(self, registration: DeviceRegistration) -> None:
        value = registration.model_dump_json()
        with session_scope(self.session_factory) as db:
            entry = db.get(models.LocalStoreEntry, self.key)
            if entry is None:
                db.add(models.LocalStoreEntry(key=self.key, value=value))
            else:
                entry.value = value

    def clear(self) -> None:
        with session_scope(self.session_factory) as db:
            entry = db.get(models.LocalStoreEntry, self.key)
            if entry is not None:
                db.delete(entry)
