# routers/access_control.py

from typing import List

from fastapi import APIRouter, Depends
from supabase import Client

from core import access_admin
from core.authorization import AuthorizationOutcome
from dependencies.auth import get_db_client, requires_permission
from models.access import (
    AssignUserRoles,
    PermissionOverride,
    PermissionRead,
    RoleCreate,
    RoleRead,
    SetRolePermissions,
    SetUserPermissions,
    UserAccessRead,
)

router = APIRouter(
    prefix="/access",
    tags=["Access Management"],
)


# ============================================================
# PERMISSIONS
# ============================================================
@router.get(
    "/permissions",
    response_model=List[PermissionRead],
    summary="List permission catalog",
    dependencies=[Depends(requires_permission("roles.read"))],
)
def list_permissions(client: Client = Depends(get_db_client)):
    return access_admin.list_permissions(client)


# ============================================================
# ROLES
# ============================================================
@router.get(
    "/roles",
    response_model=List[RoleRead],
    summary="List roles with their permissions",
    dependencies=[Depends(requires_permission("roles.read"))],
)
def list_roles(client: Client = Depends(get_db_client)):
    return access_admin.list_roles(client)


@router.post(
    "/roles",
    response_model=RoleRead,
    status_code=201,
    summary="Create a custom role",
    dependencies=[Depends(requires_permission("roles.write"))],
)
def create_role(payload: RoleCreate, client: Client = Depends(get_db_client)):
    return access_admin.create_role(payload, client)


@router.put(
    "/roles/{role_key}/permissions",
    response_model=RoleRead,
    summary="Replace or extend a role's permissions",
    description="""
    `mode=replace` (default) swaps the whole set, `mode=add` only appends.
    Unknown permission keys reject the request with 400.
    """,
    dependencies=[Depends(requires_permission("roles.write"))],
)
def set_role_permissions(
    role_key: str,
    payload: SetRolePermissions,
    client: Client = Depends(get_db_client),
):
    return access_admin.set_role_permissions(
        role_key, payload.permission_keys, payload.mode, client
    )


# ============================================================
# USER ACCESS (target user must be in caller's org)
# ============================================================
@router.get(
    "/users/{user_id}",
    response_model=UserAccessRead,
    summary="Roles, overrides and effective permissions of a user",
)
def get_user_access(
    user_id: str,
    access: AuthorizationOutcome = Depends(requires_permission("users.read")),
    client: Client = Depends(get_db_client),
):
    access_admin.require_user_in_org(user_id, access.org_id, client)
    return access_admin.get_user_access(user_id, client)


@router.put(
    "/users/{user_id}/roles",
    response_model=List[str],
    summary="Assign roles to a user",
)
def assign_user_roles(
    user_id: str,
    payload: AssignUserRoles,
    access: AuthorizationOutcome = Depends(requires_permission("users.write")),
    client: Client = Depends(get_db_client),
):
    access_admin.require_user_in_org(user_id, access.org_id, client)
    return access_admin.assign_user_roles(user_id, payload.role_keys, payload.mode, client)


@router.put(
    "/users/{user_id}/permissions",
    response_model=List[PermissionOverride],
    summary="Replace a user's permission overrides",
)
def set_user_permissions(
    user_id: str,
    payload: SetUserPermissions,
    access: AuthorizationOutcome = Depends(requires_permission("users.write")),
    client: Client = Depends(get_db_client),
):
    access_admin.require_user_in_org(user_id, access.org_id, client)
    return access_admin.set_user_permission_overrides(user_id, payload.overrides, client)
