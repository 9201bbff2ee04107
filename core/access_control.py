# core/access_control.py

"""
Effective permission resolution.

A user's effective permissions are the union of the permission keys of
every role they hold, with their per-user overrides applied on top:
ALLOW adds a key, DENY removes it even when a role grants it. A user with
no roles and no overrides simply has no permissions.
"""

from typing import Iterable, List, Optional, Set

from supabase import Client

from core.errors import storage_error
from core.logging_config import logger
from core.supabase_client import require_client
from models.access import PermissionOverride
from models.enums import PermissionEffect


# -----------------------------------------------------
# Storage reads
# -----------------------------------------------------
def fetch_user_role_ids(user_id: str, client: Client) -> List[str]:
    try:
        result = (
            client.table("user_roles")
            .select("role_id")
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load user roles") from e

    return [row["role_id"] for row in (result.data or [])]


def fetch_role_permission_keys(user_id: str, client: Client) -> List[str]:
    """Permission keys reachable through any role the user holds."""
    role_ids = fetch_user_role_ids(user_id, client)
    if not role_ids:
        return []

    try:
        result = (
            client.table("role_permissions")
            .select("permission_key")
            .in_("role_id", role_ids)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load role permissions") from e

    return [row["permission_key"] for row in (result.data or [])]


def fetch_user_overrides(user_id: str, client: Client) -> List[PermissionOverride]:
    try:
        result = (
            client.table("user_permission_overrides")
            .select("permission_key, effect")
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load permission overrides") from e

    return [
        PermissionOverride(permission_key=row["permission_key"], effect=row["effect"])
        for row in (result.data or [])
    ]


# -----------------------------------------------------
# Merge
# -----------------------------------------------------
def apply_permission_overrides(
    role_permission_keys: Iterable[str],
    overrides: Iterable[PermissionOverride],
) -> Set[str]:
    effective = set(role_permission_keys)

    for override in overrides:
        if override.effect == PermissionEffect.ALLOW:
            effective.add(override.permission_key)
        else:
            effective.discard(override.permission_key)

    return effective


def resolve_effective_permissions(user_id: str, client: Optional[Client] = None) -> Set[str]:
    """
    Compute the permission keys `user_id` currently holds.

    Reads user_roles, role_permissions and user_permission_overrides;
    never writes. Callers that need the set several times in one request
    should go through RequestContext.effective_permissions instead of
    calling this repeatedly.
    """
    client = require_client(client)

    role_keys = fetch_role_permission_keys(user_id, client)
    overrides = fetch_user_overrides(user_id, client)
    effective = apply_permission_overrides(role_keys, overrides)

    logger.debug(
        f"Resolved {len(effective)} permissions for user {user_id} "
        f"({len(overrides)} overrides)"
    )
    return effective


def has_all_permissions(effective: Set[str], required: Iterable[str]) -> bool:
    """
    True when `required` is non-empty and fully contained in `effective`.

    An empty requirement grants nothing: endpoints that declare no global
    permissions rely on building assignments alone.
    """
    required = set(required)
    if not required:
        return False
    return required.issubset(effective)
