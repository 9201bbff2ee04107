# core/access_admin.py

"""
Role and permission administration.

These are the only functions in the project that write to the access
tables. The decision engine only reads what they store.
"""

from typing import Dict, List, Optional

from supabase import Client

from core.access_control import (
    fetch_user_overrides,
    fetch_user_role_ids,
    resolve_effective_permissions,
)
from core.errors import (
    Conflict,
    InvalidRequest,
    NotFound,
    UnknownPermissionKey,
    UnknownRoleKey,
    storage_error,
)
from core.logging_config import logger
from core.supabase_client import require_client
from models.access import PermissionOverride, PermissionRead, RoleCreate, RoleRead, UserAccessRead


# ============================================================
# LOOKUPS
# ============================================================
def list_permissions(client: Optional[Client] = None) -> List[PermissionRead]:
    client = require_client(client)
    try:
        result = client.table("permissions").select("*").order("key").execute()
    except Exception as e:
        raise storage_error(e, "Failed to list permissions") from e
    return [PermissionRead(**row) for row in (result.data or [])]


def _role_permission_map(role_ids: List[str], client: Client) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {role_id: [] for role_id in role_ids}
    if not role_ids:
        return grouped
    try:
        result = (
            client.table("role_permissions")
            .select("role_id, permission_key")
            .in_("role_id", role_ids)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load role permissions") from e

    for row in result.data or []:
        grouped.setdefault(row["role_id"], []).append(row["permission_key"])
    return {role_id: sorted(set(keys)) for role_id, keys in grouped.items()}


def _to_role(row: dict, permissions: List[str]) -> RoleRead:
    return RoleRead(
        id=row["id"],
        key=row["key"],
        name=row.get("name"),
        description=row.get("description"),
        is_system=bool(row.get("is_system")),
        permissions=permissions,
    )


def list_roles(client: Optional[Client] = None) -> List[RoleRead]:
    client = require_client(client)
    try:
        result = client.table("roles").select("*").order("key").execute()
    except Exception as e:
        raise storage_error(e, "Failed to list roles") from e

    rows = result.data or []
    permissions = _role_permission_map([row["id"] for row in rows], client)
    return [_to_role(row, permissions.get(row["id"], [])) for row in rows]


def find_role(role_key: str, client: Client) -> dict:
    try:
        result = client.table("roles").select("*").eq("key", role_key).limit(1).execute()
    except Exception as e:
        raise storage_error(e, "Failed to load role") from e
    if not result.data:
        raise NotFound("Role not found")
    return result.data[0]


def require_user_in_org(user_id: str, org_id: str, client: Optional[Client] = None) -> dict:
    """Same single-predicate rule as buildings: foreign users do not exist."""
    client = require_client(client)
    try:
        result = (
            client.table("users")
            .select("*")
            .eq("id", user_id)
            .eq("org_id", org_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load user") from e
    if not result.data:
        raise NotFound("User not found")
    return result.data[0]


def require_active_member(
    user_id: str,
    org_id: str,
    client: Optional[Client] = None,
    message: str = "User not in org",
) -> dict:
    """
    Target of an assignment: must exist, be active and belong to org_id.
    Any miss is reported as the same InvalidRequest.
    """
    client = require_client(client)
    try:
        result = (
            client.table("users")
            .select("*")
            .eq("id", user_id)
            .eq("org_id", org_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load user") from e

    if not result.data or not result.data[0].get("is_active", False):
        logger.warning(f"Rejected inactive or foreign user {user_id} for org {org_id}")
        raise InvalidRequest(message)
    return result.data[0]


def _require_permission_keys(keys: List[str], client: Client):
    wanted = set(keys)
    if not wanted:
        return
    try:
        result = (
            client.table("permissions")
            .select("key")
            .in_("key", sorted(wanted))
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load permissions") from e

    known = {row["key"] for row in (result.data or [])}
    missing = wanted - known
    if missing:
        raise UnknownPermissionKey(missing)


# ============================================================
# ROLES
# ============================================================
def create_role(payload: RoleCreate, client: Optional[Client] = None) -> RoleRead:
    client = require_client(client)

    try:
        find_role(payload.key, client)
    except NotFound:
        pass
    else:
        raise Conflict(f"Role '{payload.key}' already exists")

    row = {
        "key": payload.key,
        "name": payload.name,
        "description": payload.description,
        "is_system": False,
    }
    try:
        result = client.table("roles").insert(row).execute()
    except Exception as e:
        raise storage_error(e, "Failed to create role") from e

    logger.info(f"Created role {payload.key}")
    return _to_role(result.data[0], [])


def set_role_permissions(
    role_key: str,
    permission_keys: List[str],
    mode: str = "replace",
    client: Optional[Client] = None,
) -> RoleRead:
    """
    Replace (default) or extend the permission set of a role.
    Unknown permission keys reject the whole request.
    """
    client = require_client(client)
    role = find_role(role_key, client)
    _require_permission_keys(permission_keys, client)

    current = set(_role_permission_map([role["id"]], client)[role["id"]])
    wanted = set(permission_keys)

    try:
        if mode == "replace":
            client.table("role_permissions").delete().eq("role_id", role["id"]).execute()
            to_insert = wanted
        else:
            to_insert = wanted - current
        if to_insert:
            client.table("role_permissions").insert(
                [{"role_id": role["id"], "permission_key": key} for key in sorted(to_insert)]
            ).execute()
    except Exception as e:
        raise storage_error(e, "Failed to update role permissions") from e

    logger.info(f"Role {role_key} permissions updated ({mode}): {sorted(wanted)}")
    permissions = _role_permission_map([role["id"]], client)[role["id"]]
    return _to_role(role, permissions)


# ============================================================
# USER ROLES + OVERRIDES
# ============================================================
def assign_user_roles(
    user_id: str,
    role_keys: List[str],
    mode: str = "replace",
    client: Optional[Client] = None,
) -> List[str]:
    client = require_client(client)
    wanted = set(role_keys)

    roles_by_key: Dict[str, str] = {}
    if wanted:
        try:
            result = (
                client.table("roles")
                .select("id, key")
                .in_("key", sorted(wanted))
                .execute()
            )
        except Exception as e:
            raise storage_error(e, "Failed to load roles") from e
        roles_by_key = {row["key"]: row["id"] for row in (result.data or [])}

    missing = wanted - set(roles_by_key)
    if missing:
        raise UnknownRoleKey(missing)

    current = set(fetch_user_role_ids(user_id, client))

    try:
        if mode == "replace":
            client.table("user_roles").delete().eq("user_id", user_id).execute()
            to_insert = set(roles_by_key.values())
        else:
            to_insert = set(roles_by_key.values()) - current
        if to_insert:
            client.table("user_roles").insert(
                [{"user_id": user_id, "role_id": role_id} for role_id in sorted(to_insert)]
            ).execute()
    except Exception as e:
        raise storage_error(e, "Failed to update user roles") from e

    logger.info(f"User {user_id} roles updated ({mode}): {sorted(wanted)}")
    return user_role_keys(user_id, client)


def user_role_keys(user_id: str, client: Client) -> List[str]:
    role_ids = fetch_user_role_ids(user_id, client)
    if not role_ids:
        return []
    try:
        result = client.table("roles").select("key").in_("id", role_ids).execute()
    except Exception as e:
        raise storage_error(e, "Failed to load roles") from e
    return sorted(row["key"] for row in (result.data or []))


def set_user_permission_overrides(
    user_id: str,
    overrides: List[PermissionOverride],
    client: Optional[Client] = None,
) -> List[PermissionOverride]:
    """
    Replace every override the user has. One effect per permission key;
    when the same key appears twice the later entry wins.
    """
    client = require_client(client)

    by_key: Dict[str, PermissionOverride] = {}
    for override in overrides:
        by_key[override.permission_key] = override

    _require_permission_keys(list(by_key), client)

    try:
        client.table("user_permission_overrides").delete().eq("user_id", user_id).execute()
        if by_key:
            client.table("user_permission_overrides").insert(
                [
                    {
                        "user_id": user_id,
                        "permission_key": key,
                        "effect": override.effect.value,
                    }
                    for key, override in sorted(by_key.items())
                ]
            ).execute()
    except Exception as e:
        raise storage_error(e, "Failed to update permission overrides") from e

    logger.info(f"User {user_id} overrides replaced: {sorted(by_key)}")
    return fetch_user_overrides(user_id, client)


def get_user_access(user_id: str, client: Optional[Client] = None) -> UserAccessRead:
    client = require_client(client)
    return UserAccessRead(
        user_id=user_id,
        roles=user_role_keys(user_id, client),
        overrides=fetch_user_overrides(user_id, client),
        effective_permissions=sorted(resolve_effective_permissions(user_id, client)),
    )
