from fastapi import APIRouter
from pydantic import BaseModel, Field

from ledgerdesk.core.modules.access.models import GuardDecision
from ledgerdesk.web.deps import AppDep, OptionalAuthTokenDep

router = APIRouter(tags=["access"])


class AccessCheckRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Navigation target, e.g. /invoice/list")


@router.post(
    "/access/check",
    summary="Check access to a page",
    description=(
        "Evaluate the access guard for a navigation target. Public pages (login, register, password reset) "
        "are always authorized. Other pages require a session whose user is admin or staff. "
        "Any lookup failure or timeout results in 'denied'. Clients should call this on every navigation "
        "and after login/logout, and ignore answers for navigations that are no longer current."
    ),
    operation_id="checkAccess",
    responses={200: {"description": "Guard decision"}},
)
async def check_access(request: AccessCheckRequest, app: AppDep, auth_token: OptionalAuthTokenDep) -> GuardDecision:
    return await app.check_access(auth_token, request.path)
