"""Push message sending via Firebase Cloud Messaging."""

import asyncio

import firebase_admin
import structlog
from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError

from ledgerdesk.core.modules.notification.models import PushNotification

logger = structlog.get_logger(__name__)


def build_message(notification: PushNotification) -> messaging.Message:
    return messaging.Message(
        token=notification.token,
        notification=messaging.Notification(title=notification.title, body=notification.body),
        data=notification.data,
    )


async def send_push_message(app: firebase_admin.App, notification: PushNotification) -> tuple[bool, str]:
    """Send one push message.

    Returns:
        Tuple of (success, message_id or error message)
    """
    try:
        # The Admin SDK is blocking
        message_id = await asyncio.to_thread(messaging.send, build_message(notification), app=app)
    except (FirebaseError, ValueError) as e:
        logger.exception("push_send_failed", title=notification.title)
        return False, str(e)
    else:
        logger.debug("push_message_sent", message_id=message_id)
        return True, message_id
