# core/org_scope.py

"""
Tenant isolation.

Every org-scoped lookup goes through here before any permission check.
Buildings are fetched with id AND org_id in a single predicate, so a
building that belongs to another org is indistinguishable from one that
does not exist.
"""

import re
from typing import Optional

from supabase import Client

from core.errors import InvalidOrgScope, NotFound, OrgScopeRequired, storage_error
from core.logging_config import logger
from core.supabase_client import require_client
from models.access import Identity

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def normalize_org_id(org_id: Optional[str]) -> Optional[str]:
    """Blank org ids count as absent."""
    if org_id is None:
        return None
    org_id = str(org_id).strip()
    return org_id or None


def require_org_id(identity: Optional[Identity]) -> str:
    """Return the identity's org id or raise OrgScopeRequired."""
    org_id = normalize_org_id(identity.org_id) if identity is not None else None
    if org_id is None:
        logger.warning(
            "Org scope required but missing for user "
            f"{identity.user_id if identity is not None else '<anonymous>'}"
        )
        raise OrgScopeRequired()
    return org_id


def require_building_in_org(
    building_id: str,
    org_id: str,
    client: Optional[Client] = None,
) -> dict:
    """
    Fetch the building row that has both this id and this org id.

    Raises NotFound when no such row exists, whether the id is unknown
    or the building belongs to another org.
    """
    org_id = normalize_org_id(org_id)
    if org_id is None:
        raise OrgScopeRequired()

    client = require_client(client)

    try:
        result = (
            client.table("buildings")
            .select("*")
            .eq("id", building_id)
            .eq("org_id", org_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load building") from e

    if not result.data:
        raise NotFound("Building not found")

    return result.data[0]


def parse_org_id_override(value: Optional[str]) -> Optional[str]:
    """
    Parse the X-Org-Id header. Blank → None; anything that does not look
    like a UUID → InvalidOrgScope.
    """
    value = normalize_org_id(value)
    if value is None:
        return None
    if not UUID_PATTERN.match(value):
        raise InvalidOrgScope("Invalid org scope header")
    return value
