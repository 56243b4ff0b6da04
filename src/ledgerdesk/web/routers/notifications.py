from fastapi import APIRouter

from ledgerdesk.core.modules.notification.models import PushNotification, PushResult
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES, ErrorResponse

router: APIRouter = APIRouter(tags=["notifications"])


@router.post(
    "/notifications/send",
    summary="Send push notification",
    description="Send a push notification to one device through Firebase Cloud Messaging.",
    operation_id="sendNotification",
    responses={
        200: {"description": "Message accepted by the provider"},
        503: {"model": ErrorResponse, "description": "Push notifications not configured or provider failure"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def send_notification(request: PushNotification, app: AppDep, auth_token: AuthTokenDep) -> PushResult:
    return await app.send_notification(auth_token, request)
