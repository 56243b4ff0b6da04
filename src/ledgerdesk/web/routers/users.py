from fastapi import APIRouter
from pydantic import BaseModel, Field

from ledgerdesk.core.modules.user.models import UserType, UserView
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to create a new user."""

    email: str = Field(..., min_length=1, description="Email address for the new user")
    password: str = Field(..., min_length=1, description="Password for the new user")
    display_name: str = Field("", description="Name shown in the back office")
    usertype: UserType = Field(UserType.STAFF, description="Role of the new user")


class SetUsertypeRequest(BaseModel):
    usertype: UserType = Field(..., description="New role")


@router.get(
    "/users",
    summary="List all users",
    description="Get all users in the system. Only accessible by admin users.",
    operation_id="listUsers",
    responses={
        200: {"description": "List of all users"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_users(app: AppDep, auth_token: AuthTokenDep) -> list[UserView]:
    return await app.get_all_users(auth_token)


@router.post(
    "/users",
    summary="Create new user",
    description="Create a new user account with any usertype. Only accessible by admin users.",
    operation_id="createUser",
    status_code=201,
    responses={
        201: {"description": "User created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def create_user(create_data: CreateUserRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.create_user(
        auth_token, create_data.email, create_data.password, create_data.display_name, create_data.usertype
    )


@router.put(
    "/users/{email}/usertype",
    summary="Change usertype",
    description="Change the role of a user, e.g. promote a self-registered customer to staff. Admin only.",
    operation_id="setUsertype",
    responses={
        200: {"description": "Updated user"},
        400: {"model": ErrorResponse, "description": "Cannot remove your own admin role"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def set_usertype(email: str, request: SetUsertypeRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.set_usertype(auth_token, email, request.usertype)


@router.delete(
    "/users/{email}",
    summary="Delete user",
    description="Delete a user account and its sessions. Only accessible by admin users.",
    operation_id="deleteUser",
    status_code=204,
    responses={
        204: {"description": "User deleted successfully"},
        400: {"model": ErrorResponse, "description": "Cannot delete yourself"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def delete_user(email: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_user(auth_token, email)
