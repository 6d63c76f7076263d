"""Silent push transports."""

from remindsync.infrastructure.push.fcm import FCMPushSender, LogOnlyPushSender

__all__ = ["FCMPushSender", "LogOnlyPushSender"]
