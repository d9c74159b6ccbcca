"""
Reminder Engine
Plans trigger times for local medication reminders and hands them to the OS scheduler
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Union
from dataclasses import dataclass, field
from datetime import datetime, date, time, timedelta, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo

from config import settings
from schemas.device import DevicePlatform, normalize_platform


logger = logging.getLogger(__name__)


class InvalidTimeError(ValueError):
    """Raised for an out-of-range hour, minute or weekday"""


class TriggerKind(str, Enum):
    """How a reminder trigger fires"""
    ABSOLUTE = "absolute"
    DAILY = "daily"
    WEEKLY = "weekly"


class ReminderRepeat(str, Enum):
    """Repeat modes offered when creating a reminder"""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"


# Weekday numbering follows the OS scheduler: 1 = Sunday ... 7 = Saturday
DEFAULT_WEEKDAY = 2  # Monday


@dataclass(frozen=True)
class ReminderTrigger:
    """
    When a local notification fires.

    ABSOLUTE triggers carry fire_at; DAILY and WEEKLY ones recur at
    hour:minute and leave the recurrence to the OS scheduler.
    """
    kind: TriggerKind
    hour: int
    minute: int
    fire_at: Optional[datetime] = None
    weekday: Optional[int] = None

    @property
    def repeats(self) -> bool:
        return self.kind is not TriggerKind.ABSOLUTE

    def to_os_trigger(self, channel_id: Optional[str] = None) -> Dict[str, Any]:
        """Trigger payload in the shape OS schedulers accept"""
        if self.kind is TriggerKind.ABSOLUTE:
            trigger: Dict[str, Any] = {"date": self.fire_at.isoformat()}
        else:
            trigger = {"hour": self.hour, "minute": self.minute, "repeats": True}
            if self.kind is TriggerKind.WEEKLY:
                trigger["weekday"] = self.weekday
        if channel_id:
            trigger["channel_id"] = channel_id
        return trigger

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "hour": self.hour,
            "minute": self.minute,
            "fire_at": self.fire_at.isoformat() if self.fire_at else None,
            "weekday": self.weekday,
        }


def _check_int(name: str, value: Any, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise InvalidTimeError(f"{name} must be an integer in [{low}, {high}], got {value!r}")


def validate_time(hour: Any, minute: Any) -> None:
    """Reject out-of-range times instead of clamping them"""
    _check_int("hour", hour, 0, 23)
    _check_int("minute", minute, 0, 59)


def _default_timezone() -> Optional[tzinfo]:
    if settings.DEVICE_TIMEZONE:
        return ZoneInfo(settings.DEVICE_TIMEZONE)
    return None


class ReminderTriggerPlanner:
    """
    Computes triggers in the device's local timezone.

    With tz=None the host's local time is used. Quiet hours are not
    considered; the planner only answers when a reminder would fire.
    """

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.tz = tz if tz is not None else _default_timezone()
        self._clock = clock

    def _localize(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            if self.tz is None:
                return value.astimezone()
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)

    def _now(self) -> datetime:
        if self._clock is not None:
            return self._localize(self._clock())
        return datetime.now(self.tz).astimezone(self.tz)

    def _at(self, day: date, hour: int, minute: int) -> datetime:
        wall = datetime.combine(day, time(hour, minute))
        if self.tz is None:
            return wall.astimezone()
        return wall.replace(tzinfo=self.tz)

    def plan_daily(self, hour: int, minute: int) -> ReminderTrigger:
        """Fire every day at hour:minute"""
        validate_time(hour, minute)
        return ReminderTrigger(kind=TriggerKind.DAILY, hour=hour, minute=minute)

    def plan_weekly(self, weekday: int, hour: int, minute: int) -> ReminderTrigger:
        """Fire every week on weekday (1 = Sunday ... 7 = Saturday) at hour:minute"""
        validate_time(hour, minute)
        _check_int("weekday", weekday, 1, 7)
        return ReminderTrigger(kind=TriggerKind.WEEKLY, hour=hour, minute=minute, weekday=weekday)

    def plan_once(self, hour: int, minute: int, now: Optional[datetime] = None) -> ReminderTrigger:
        """
        Next occurrence of hour:minute.

        Today at hour:minute:00.000 local time, or tomorrow when that moment
        is not after ``now``. fire_at is always strictly after ``now``.
        """
        validate_time(hour, minute)
        now = self._localize(now) if now is not None else self._now()

        fire_at = self._at(now.date(), hour, minute)
        if fire_at <= now:
            fire_at = self._at(now.date() + timedelta(days=1), hour, minute)

        return ReminderTrigger(kind=TriggerKind.ABSOLUTE, hour=hour, minute=minute, fire_at=fire_at)

    def plan(
        self,
        repeat: Union[ReminderRepeat, str],
        hour: int,
        minute: int,
        now: Optional[datetime] = None,
        weekday: Optional[int] = None
    ) -> ReminderTrigger:
        """Dispatch on repeat mode; unrecognised modes plan a one-off reminder"""
        mode = repeat.value if isinstance(repeat, ReminderRepeat) else str(repeat or "").lower()
        if mode == ReminderRepeat.DAILY.value:
            return self.plan_daily(hour, minute)
        if mode == ReminderRepeat.WEEKLY.value:
            return self.plan_weekly(weekday or DEFAULT_WEEKDAY, hour, minute)
        return self.plan_once(hour, minute, now=now)


@dataclass
class NotificationChannel:
    """Android notification channel for reminders"""
    id: str = field(default_factory=lambda: settings.REMINDER_CHANNEL_ID)
    name: str = field(default_factory=lambda: settings.REMINDER_CHANNEL_NAME)
    importance: str = "high"
    sound: str = "default"
    vibration_pattern: List[int] = field(default_factory=lambda: [0, 250, 250, 250])
    light_color: str = "#FF231F7C"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "importance": self.importance,
            "sound": self.sound,
            "vibration_pattern": list(self.vibration_pattern),
            "light_color": self.light_color,
        }


class LocalNotificationScheduler(Protocol):
    """OS local-notification API"""

    async def ensure_channel(self, channel: NotificationChannel) -> None: ...

    async def request_permission(self) -> bool: ...

    async def schedule(self, content: Dict[str, Any], trigger: ReminderTrigger) -> str: ...

    async def cancel(self, notification_id: str) -> None: ...

    async def cancel_all(self) -> None: ...


class ReminderEngine:
    """
    Schedules medication reminders on the device

    Invalid times propagate as InvalidTimeError. OS scheduler failures are
    logged and reported as a None notification id.
    """

    def __init__(
        self,
        scheduler: LocalNotificationScheduler,
        planner: Optional[ReminderTriggerPlanner] = None,
        channel: Optional[NotificationChannel] = None
    ):
        self.scheduler = scheduler
        self.planner = planner or ReminderTriggerPlanner()
        self.channel = channel or NotificationChannel()

    async def ensure_ready(self, platform: Union[DevicePlatform, str]) -> bool:
        """Set up the Android channel and ask for notification permission"""
        if normalize_platform(platform) is DevicePlatform.ANDROID:
            try:
                await self.scheduler.ensure_channel(self.channel)
            except Exception as e:
                logger.warning(f"Could not create notification channel {self.channel.id}: {e}")

        granted = await self.scheduler.request_permission()
        if not granted:
            logger.info("Notification permission not granted")
        return granted

    async def schedule_medication_reminder(
        self,
        title: str,
        body: str,
        hour: int,
        minute: int,
        repeat: Union[ReminderRepeat, str] = ReminderRepeat.NONE,
        weekday: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Optional[str]:
        """
        Schedule a local reminder.

        Returns:
            OS notification id, or None if the OS scheduler failed
        """
        trigger = self.planner.plan(repeat, hour, minute, now=now, weekday=weekday)
        content = {
            "title": title,
            "body": body,
            "sound": True,
            "data": {"type": "medicine_reminder"},
            "channel_id": self.channel.id,
        }

        try:
            notification_id = await self.scheduler.schedule(content, trigger)
        except Exception as e:
            logger.error(f"Failed to schedule reminder {title!r}: {e}")
            return None

        logger.info(f"Scheduled {trigger.kind.value} reminder {notification_id} at {hour:02d}:{minute:02d}")
        return notification_id

    async def cancel_reminder(self, notification_id: Optional[str]) -> None:
        if not notification_id:
            return
        await self.scheduler.cancel(notification_id)

    async def cancel_all(self) -> None:
        await self.scheduler.cancel_all()
        logger.info("Cancelled all local reminders")
