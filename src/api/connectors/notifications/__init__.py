"""Conector do serviço de notificações."""

from .client import LoggingNotificationService, NotificationServiceClient

__all__ = ["LoggingNotificationService", "NotificationServiceClient"]
