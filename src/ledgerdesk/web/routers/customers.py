from typing import Annotated

from fastapi import APIRouter, Query

from ledgerdesk.core.modules.customer.models import Customer, CustomerCreate
from ledgerdesk.core.pagination import PaginationResult
from ledgerdesk.web.deps import AppDep, AuthTokenDep
from ledgerdesk.web.openapi import STAFF_AUTH_RESPONSES, ErrorResponse

router: APIRouter = APIRouter(tags=["customers"])


@router.get(
    "/customers",
    summary="List customers",
    description="Get customers newest first. 'search' matches the start of the customer id, names, email or phone.",
    operation_id="listCustomers",
    responses={200: {"description": "Paginated list of customers"}, **STAFF_AUTH_RESPONSES},
)
async def list_customers(
    app: AppDep,
    auth_token: AuthTokenDep,
    search: Annotated[str | None, Query(description="Search text")] = None,
    limit: Annotated[int, Query(ge=1, le=200, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Customer]:
    return await app.get_customers(auth_token, search, limit, offset)


@router.post(
    "/customers",
    summary="Create customer",
    description="Create a customer. A sequential customer id (CT1, CT2, ...) is assigned.",
    operation_id="createCustomer",
    status_code=201,
    responses={
        201: {"description": "Customer created"},
        400: {"model": ErrorResponse, "description": "Missing first name or contact details"},
        503: {"model": ErrorResponse, "description": "Could not allocate a customer id; nothing was saved"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def create_customer(request: CustomerCreate, app: AppDep, auth_token: AuthTokenDep) -> Customer:
    return await app.create_customer(auth_token, request)


@router.get(
    "/customers/{customer_id}",
    summary="Get customer",
    operation_id="getCustomer",
    responses={
        200: {"description": "Customer"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def get_customer(customer_id: str, app: AppDep, auth_token: AuthTokenDep) -> Customer:
    return await app.get_customer(auth_token, customer_id)


@router.delete(
    "/customers/{customer_id}",
    summary="Delete customer",
    operation_id="deleteCustomer",
    status_code=204,
    responses={
        204: {"description": "Customer deleted"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
        **STAFF_AUTH_RESPONSES,
    },
)
async def delete_customer(customer_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_customer(auth_token, customer_id)
