"""
Actions Module
Local reminder planning and scheduling
"""

from .reminder_engine import (
    InvalidTimeError,
    TriggerKind,
    ReminderRepeat,
    ReminderTrigger,
    ReminderTriggerPlanner,
    NotificationChannel,
    LocalNotificationScheduler,
    ReminderEngine,
)


__all__ = [
    "InvalidTimeError",
    "TriggerKind",
    "ReminderRepeat",
    "ReminderTrigger",
    "ReminderTriggerPlanner",
    "NotificationChannel",
    "LocalNotificationScheduler",
    "ReminderEngine",
]
