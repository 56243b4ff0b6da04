from typing import Any

import firebase_admin
import structlog
from firebase_admin import credentials
from pymongo.asynchronous.database import AsyncDatabase

from ledgerdesk.core.core import Service
from ledgerdesk.core.modules.notification.models import PushNotification, PushResult
from ledgerdesk.core.modules.notification.sender import send_push_message
from ledgerdesk.errors import TransientError

logger = structlog.get_logger(__name__)


class NotificationService(Service):
    """Forwards push notifications to Firebase Cloud Messaging."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._firebase_app: firebase_admin.App | None = None

    async def on_start(self) -> None:
        path = self.core.config.firebase_credentials_path
        if not path:
            logger.info("push_notifications_disabled")
            return
        self._firebase_app = firebase_admin.initialize_app(credentials.Certificate(path), name="ledgerdesk")
        logger.info("push_notifications_enabled")

    async def on_stop(self) -> None:
        if self._firebase_app is not None:
            firebase_admin.delete_app(self._firebase_app)
            self._firebase_app = None

    @property
    def enabled(self) -> bool:
        return self._firebase_app is not None

    async def send_notification(self, notification: PushNotification) -> PushResult:
        if self._firebase_app is None:
            raise TransientError("Push notifications are not configured")

        success, result = await send_push_message(self._firebase_app, notification)
        if not success:
            raise TransientError("Failed to send notification")
        return PushResult(success=True, message_id=result)
