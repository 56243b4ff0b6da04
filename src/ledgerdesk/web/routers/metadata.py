"""Metadata endpoints for exposing system information."""

from fastapi import APIRouter

from ledgerdesk.core.modules.access.guard import PUBLIC_PATHS
from ledgerdesk.core.modules.user.models import UserType
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import ErrorResponse

router = APIRouter(tags=["metadata"])


@router.get(
    "/metadata/public-paths",
    summary="Get public pages",
    description="Pages that never require authentication. The client can skip the access check for these.",
    operation_id="getPublicPaths",
    responses={200: {"description": "Public paths"}},
)
async def get_public_paths() -> list[str]:
    return sorted(PUBLIC_PATHS)


@router.get(
    "/metadata/usertypes",
    summary="Get usertypes",
    description="All roles a user profile can have.",
    operation_id="getUsertypes",
    responses={200: {"description": "Usertypes"}},
)
async def get_usertypes() -> list[UserType]:
    return list(UserType)


@router.get(
    "/metadata/version",
    summary="Get version information",
    description="Returns package version, git commit hash, commit date, and build time.",
    operation_id="getVersion",
    responses={
        200: {"description": "Version and build information"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Permission denied"},
    },
)
async def get_version(app: AppDep, auth_token: AuthTokenDep) -> dict[str, str]:
    return await app.get_version(auth_token)
