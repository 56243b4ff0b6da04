from fastapi import APIRouter

from ledgerdesk.core.modules.counter.models import Counter
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES

router: APIRouter = APIRouter(tags=["counters"])


@router.get(
    "/counters",
    summary="List counters",
    description="Last allocated value of every record-id counter. Read-only: counters only change when records are created.",
    operation_id="listCounters",
    responses={200: {"description": "Counters"}, **STAFF_AUTH_RESPONSES},
)
async def list_counters(app: AppDep, auth_token: AuthTokenDep) -> list[Counter]:
    return await app.get_counters(auth_token)
