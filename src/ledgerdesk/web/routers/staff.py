from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ledgerdesk.core.modules.staff.models import Staff, StaffCreate, StaffStatus
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES, ErrorResponse

router: APIRouter = APIRouter(tags=["staff"])


class SetStaffStatusRequest(BaseModel):
    status: StaffStatus = Field(..., description="New employment status")


@router.get(
    "/staff",
    summary="List staff",
    operation_id="listStaff",
    responses={200: {"description": "Staff members ordered by staff id"}, **STAFF_AUTH_RESPONSES},
)
async def list_staff(
    app: AppDep,
    auth_token: AuthTokenDep,
    status: Annotated[StaffStatus | None, Query(description="Only staff with this status")] = None,
) -> list[Staff]:
    return await app.get_staff_list(auth_token, status)


@router.post(
    "/staff",
    summary="Add staff member",
    description="Create a staff record. A sequential staff id (STAFF0001, ...) is assigned.",
    operation_id="createStaff",
    status_code=201,
    responses={
        201: {"description": "Staff member created"},
        400: {"model": ErrorResponse, "description": "Invalid data"},
        503: {"model": ErrorResponse, "description": "Could not allocate a staff id; nothing was saved"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def create_staff(request: StaffCreate, app: AppDep, auth_token: AuthTokenDep) -> Staff:
    return await app.create_staff(auth_token, request)


@router.get(
    "/staff/{staff_id}",
    summary="Get staff member",
    operation_id="getStaff",
    responses={
        200: {"description": "Staff member"},
        404: {"model": ErrorResponse, "description": "Staff member not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def get_staff(staff_id: str, app: AppDep, auth_token: AuthTokenDep) -> Staff:
    return await app.get_staff(auth_token, staff_id)


@router.put(
    "/staff/{staff_id}/status",
    summary="Change staff status",
    operation_id="setStaffStatus",
    responses={
        200: {"description": "Updated staff member"},
        404: {"model": ErrorResponse, "description": "Staff member not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def set_staff_status(
    staff_id: str, request: SetStaffStatusRequest, app: AppDep, auth_token: AuthTokenDep
) -> Staff:
    return await app.set_staff_status(auth_token, staff_id, request.status)


@router.delete(
    "/staff/{staff_id}",
    summary="Delete staff member",
    operation_id="deleteStaff",
    status_code=204,
    responses={
        204: {"description": "Staff member deleted"},
        404: {"model": ErrorResponse, "description": "Staff member not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def delete_staff(staff_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_staff(auth_token, staff_id)
