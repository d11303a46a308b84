"""User directory router.

Exposes the user directory gateway over HTTP. The gateway is injected via
the ``get_user_gateway`` dependency, which applications override.
Errors propagate to the handlers from ``register_exception_handlers``.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from ...features.users.services.user_directory_gateway import UserDirectoryGateway
from ..dependencies.gateway import get_user_gateway
from ..models.requests import (
    AdminRoleAssignRequest,
    AuthenticateRequest,
    PasswordChangeRequest,
    PasswordResetRequest,
    PropertiesRequest,
    RoleAssignRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from ..models.responses import (
    AuthenticateResponse,
    RoleNamesResponse,
    UserAdminRoleResponse,
    UserIdsResponse,
    UserListResponse,
    UserResponse,
    UserRoleResponse,
)

logger = logging.getLogger(__name__)

user_router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        400: {"description": "Invalid request"},
        404: {"description": "User or assignment not found"},
        409: {"description": "Assignment already exists"},
        500: {"description": "Directory operation failed"}
    }
)


def _user_list(users) -> UserListResponse:
    return UserListResponse(users=[UserResponse.from_entity(user) for user in users], total=len(users))


def _user_ids(user_ids: List[str]) -> UserIdsResponse:
    return UserIdsResponse(user_ids=user_ids, total=len(user_ids))


# Searches (registered before /{user_id} so their paths win)

@user_router.get("", response_model=UserListResponse)
async def find_users(
    prefix: Optional[str] = Query(None, description="User id prefix"),
    internal_id: Optional[str] = Query(None, description="Exact internal id"),
    limit: int = Query(0, ge=0, description="Maximum results, 0 for no limit"),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserListResponse:
    """Find users by internal id, by user id prefix, or list all."""
    return _user_list(await gateway.find(user_id=prefix, internal_id=internal_id, limit=limit))


@user_router.get("/ids", response_model=UserIdsResponse)
async def find_user_ids(
    prefix: str = Query(..., min_length=1),
    limit: int = Query(0, ge=0),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserIdsResponse:
    return _user_ids(await gateway.find_ids(prefix, limit))


@user_router.get("/ids/by-roles", response_model=UserIdsResponse)
async def find_user_ids_by_roles(
    role: List[str] = Query(..., description="Role names; repeat for several"),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserIdsResponse:
    return _user_ids(await gateway.find_ids_by_roles(role))


@user_router.get("/by-ou/{ou}", response_model=UserListResponse)
async def users_in_org_unit(
    ou: str = Path(...),
    limited: bool = Query(False, description="Cap results at the configured limit"),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserListResponse:
    return _user_list(await gateway.users_in_org_unit(ou, limited))


@user_router.get("/by-role/{role_name}", response_model=UserListResponse)
async def users_assigned(
    role_name: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserListResponse:
    return _user_list(await gateway.users_assigned(role_name))


@user_router.get("/by-admin-role/{role_name}", response_model=UserListResponse)
async def users_assigned_admin(
    role_name: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserListResponse:
    return _user_list(await gateway.users_assigned_admin(role_name))


@user_router.get("/authorized/{role_name}", response_model=UserIdsResponse)
async def users_authorized(
    role_name: str = Path(...),
    limit: int = Query(0, ge=0),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserIdsResponse:
    """Users assigned the role or any role below it in the hierarchy."""
    return _user_ids(await gateway.users_authorized(role_name, limit))


@user_router.post("/authenticate", response_model=AuthenticateResponse)
async def authenticate(
    request: AuthenticateRequest,
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> AuthenticateResponse:
    """Authenticate a user; rejections are reported in the body."""
    session, outcome = await gateway.authenticate(request.user_id, request.password)
    return AuthenticateResponse.from_result(session, outcome)


# CRUD

@user_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreateRequest,
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserResponse:
    user = await gateway.create(request.to_entity())
    logger.info(f"Created user {user.user_id} via API")
    return UserResponse.from_entity(user)


@user_router.get("/{user_id}", response_model=UserResponse)
async def read_user(
    user_id: str = Path(...),
    with_roles: bool = Query(True),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserResponse:
    return UserResponse.from_entity(await gateway.read(user_id, with_roles=with_roles))


@user_router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    request: UserUpdateRequest,
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserResponse:
    await gateway.update(request.to_entity(user_id))
    return UserResponse.from_entity(await gateway.read(user_id))


@user_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> Response:
    await gateway.remove(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_router.put("/{user_id}/properties", status_code=status.HTTP_204_NO_CONTENT)
async def update_properties(
    request: PropertiesRequest,
    user_id: str = Path(...),
    replace: bool = Query(False, description="Replace the stored set instead of merging"),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> Response:
    await gateway.update_properties(user_id, request.properties, replace=replace)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Password state

@user_router.post("/{user_id}/lock", status_code=status.HTTP_204_NO_CONTENT)
async def lock_user(user_id: str = Path(...), gateway: UserDirectoryGateway = Depends(get_user_gateway)) -> Response:
    await gateway.lock(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_router.post("/{user_id}/unlock", status_code=status.HTTP_204_NO_CONTENT)
async def unlock_user(user_id: str = Path(...), gateway: UserDirectoryGateway = Depends(get_user_gateway)) -> Response:
    await gateway.unlock(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_router.post("/{user_id}/reset-password", status_code=status.HTTP_204_NO_CONTENT)
async def reset_password(
    request: PasswordResetRequest,
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> Response:
    await gateway.reset_password(user_id, request.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_router.post("/{user_id}/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    request: PasswordChangeRequest,
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> Response:
    await gateway.change_password(user_id, request.old_password, request.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_router.delete("/{user_id}/policy", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy(user_id: str = Path(...), gateway: UserDirectoryGateway = Depends(get_user_gateway)) -> Response:
    await gateway.delete_policy(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Role grants

@user_router.get("/{user_id}/roles", response_model=RoleNamesResponse)
async def read_role_names(user_id: str = Path(...), gateway: UserDirectoryGateway = Depends(get_user_gateway)) -> RoleNamesResponse:
    return RoleNamesResponse(user_id=user_id, roles=await gateway.read_roles(user_id))


@user_router.get("/{user_id}/role-grants", response_model=List[UserRoleResponse])
async def read_user_roles(
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> List[UserRoleResponse]:
    return [UserRoleResponse.from_entity(role) for role in await gateway.read_user_roles(user_id)]


@user_router.get("/{user_id}/admin-role-grants", response_model=List[UserAdminRoleResponse])
async def read_admin_roles(
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> List[UserAdminRoleResponse]:
    return [UserAdminRoleResponse.from_entity(role) for role in await gateway.read_admin_roles(user_id)]


@user_router.post("/{user_id}/roles", response_model=UserRoleResponse, status_code=status.HTTP_201_CREATED)
async def assign_role(
    request: RoleAssignRequest,
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserRoleResponse:
    return UserRoleResponse.from_entity(await gateway.assign_role(request.to_entity(user_id)))


@user_router.delete("/{user_id}/roles/{role_name}", status_code=status.HTTP_204_NO_CONTENT)
async def deassign_role(
    user_id: str = Path(...),
    role_name: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> Response:
    await gateway.deassign_role(user_id, role_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_router.post("/{user_id}/admin-roles", response_model=UserAdminRoleResponse, status_code=status.HTTP_201_CREATED)
async def assign_admin_role(
    request: AdminRoleAssignRequest,
    user_id: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> UserAdminRoleResponse:
    return UserAdminRoleResponse.from_entity(await gateway.assign_admin_role(request.to_entity(user_id)))


@user_router.delete("/{user_id}/admin-roles/{role_name}", status_code=status.HTTP_204_NO_CONTENT)
async def deassign_admin_role(
    user_id: str = Path(...),
    role_name: str = Path(...),
    gateway: UserDirectoryGateway = Depends(get_user_gateway)
) -> Response:
    await gateway.deassign_admin_role(user_id, role_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
