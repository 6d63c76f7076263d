"""Local alert delivery."""

from remindsync.infrastructure.notifications.apscheduler_center import (
    APSchedulerNotificationCenter,
)

__all__ = ["APSchedulerNotificationCenter"]
