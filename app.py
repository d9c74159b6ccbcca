"""
DoseKeeper client core
Wires settings, the local store, backend clients and services together
"""

import logging
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

import httpx
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from config import Settings, settings as default_settings
from database import create_store_engine, init_db
from actions.reminder_engine import (
    LocalNotificationScheduler,
    ReminderEngine,
    ReminderTriggerPlanner,
)
from services.adherence_service import AdherenceService
from services.device_registry import DeviceRegistry
from services.registry_store import RegistryStore
from services.report_service import ComplianceReportService
from tools.api_client import ApiClient
from tools.intake_client import IntakeClient
from tools.push_device_client import PushDeviceClient


logger = logging.getLogger(__name__)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings"""
    settings = settings or default_settings
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


@dataclass
class ServiceContainer:
    """Everything a host app needs from the core"""
    settings: Settings
    store_engine: Engine
    api: ApiClient
    adherence: AdherenceService
    reports: ComplianceReportService
    device_registry: DeviceRegistry
    planner: ReminderTriggerPlanner
    reminders: Optional[ReminderEngine] = None

    async def aclose(self) -> None:
        """Release network and store resources"""
        await self.api.close()
        self.store_engine.dispose()
        logger.info(f"Shut down {self.settings.APP_NAME}")


def build_services(
    settings: Optional[Settings] = None,
    scheduler: Optional[LocalNotificationScheduler] = None,
    store_engine: Optional[Engine] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ServiceContainer:
    """
    Build the service graph.

    Args:
        settings: Settings to use (defaults to environment settings)
        scheduler: OS notification scheduler; reminders are disabled without one
        store_engine: Engine for the local store (defaults to DATABASE_URL)
        transport: httpx transport override, mainly for tests
    """
    settings = settings or default_settings
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENV})")

    engine = store_engine or create_store_engine(settings.DATABASE_URL, settings.DATABASE_ECHO)
    init_db(engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    api = ApiClient(
        base_url=f"{settings.API_BASE_URL.rstrip('/')}{settings.API_PREFIX}",
        access_token=settings.API_ACCESS_TOKEN,
        timeout=settings.API_TIMEOUT_SECONDS,
        transport=transport
    )

    adherence = AdherenceService()
    tz = ZoneInfo(settings.DEVICE_TIMEZONE) if settings.DEVICE_TIMEZONE else None
    planner = ReminderTriggerPlanner(tz=tz)
    registry = DeviceRegistry(
        devices=PushDeviceClient(api),
        store=RegistryStore(session_factory, key=settings.DEVICE_REGISTRY_KEY)
    )

    return ServiceContainer(
        settings=settings,
        store_engine=engine,
        api=api,
        adherence=adherence,
        reports=ComplianceReportService(IntakeClient(api), adherence),
        device_registry=registry,
        planner=planner,
        reminders=ReminderEngine(scheduler, planner) if scheduler is not None else None
    )
