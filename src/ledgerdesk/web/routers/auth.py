from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from ledgerdesk.core.modules.session.models import SESSION_TTL_SECONDS
from ledgerdesk.core.modules.user.models import UserView
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email address of the account")
    password: str = Field(..., description="Password for authentication")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Authentication token for subsequent requests")


class RegisterRequest(BaseModel):
    """Self-registration request."""

    email: str = Field(..., description="Email address, used to log in")
    password: str = Field(..., min_length=1, description="Password")
    display_name: str = Field("", description="Name shown in the back office")


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive an authentication token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, response: Response) -> LoginResponse:
    token = await app.login(login_data.email, login_data.password)

    # Cookie for browser-based clients
    response.set_cookie(
        key="auth_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,  # Set to True in production with HTTPS
        max_age=SESSION_TTL_SECONDS,
    )

    return LoginResponse(token=token)


@router.post(
    "/auth/register",
    summary="Register account",
    description=(
        "Create a new account. New accounts are customers and cannot use the back office "
        "until an admin changes their usertype to staff or admin."
    ),
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid email or password, or email already registered"},
    },
)
async def register(request: RegisterRequest, app: AppDep) -> UserView:
    return await app.register(request.email, request.password, request.display_name)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current authentication session.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    response.delete_cookie("auth_token")
