# core/building_access.py

"""
Building-scoped access decisions.

Read access to a building resource is granted by, in order:
  1. holding every global permission the endpoint requires,
  2. any building assignment on that building,
  3. an ACTIVE occupancy, when the endpoint allows residents.

Write access is granted by the required global permissions, a
BUILDING_ADMIN assignment, or a MANAGER assignment when the endpoint
allows manager writes. STAFF never writes through this path.

Both decisions first prove the building belongs to the caller's org.
Those checks raise (OrgScopeRequired, NotFound); the decisions themselves
return booleans and never write anything.
"""

from typing import Iterable, Optional

from supabase import Client

from core.access_control import has_all_permissions
from core.errors import storage_error
from core.logging_config import logger
from core.org_scope import require_building_in_org, require_org_id
from core.permissions import ASSIGNMENT_PRIORITY
from core.request_context import RequestContext
from core.supabase_client import require_client
from models.access import BuildingAccessPolicy, Identity
from models.enums import AssignmentType, OccupancyStatus

DEFAULT_POLICY = BuildingAccessPolicy()


# ============================================================
# ASSIGNMENT RESOLUTION
# ============================================================
def collapse_assignment_types(types: Iterable[str]) -> Optional[AssignmentType]:
    """Reduce a user's assignment rows on one building to the highest type."""
    present = {str(t) for t in types}
    for assignment_type in ASSIGNMENT_PRIORITY:
        if assignment_type.value in present:
            return assignment_type
    return None


def resolve_assignment_type(
    building_id: str,
    user_id: str,
    client: Optional[Client] = None,
) -> Optional[AssignmentType]:
    client = require_client(client)

    try:
        result = (
            client.table("building_assignments")
            .select("type")
            .eq("building_id", building_id)
            .eq("user_id", user_id)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load building assignments") from e

    return collapse_assignment_types(row["type"] for row in (result.data or []))


def assignment_for(context: RequestContext, building_id: str) -> Optional[AssignmentType]:
    """resolve_assignment_type, memoized on the request context."""
    if building_id not in context.assignments:
        context.assignments[building_id] = resolve_assignment_type(
            building_id, context.user_id, context.client
        )
    return context.assignments[building_id]


def has_active_occupancy(
    building_id: str,
    user_id: str,
    client: Optional[Client] = None,
) -> bool:
    client = require_client(client)

    try:
        result = (
            client.table("occupancies")
            .select("id")
            .eq("building_id", building_id)
            .eq("resident_user_id", user_id)
            .eq("status", OccupancyStatus.ACTIVE.value)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to load occupancy") from e

    return bool(result.data)


# ============================================================
# DECISIONS
# ============================================================
def _scope(
    identity: Optional[Identity],
    building_id: str,
    context: Optional[RequestContext],
) -> RequestContext:
    context = context or RequestContext(identity)
    org_id = require_org_id(identity)
    require_building_in_org(building_id, org_id, context.client)
    return context


def _has_global_permissions(context: RequestContext, policy: BuildingAccessPolicy) -> bool:
    if not policy.required_permissions:
        return False
    return has_all_permissions(context.effective_permissions, policy.required_permissions)


def decide_read(
    context: RequestContext,
    building_id: str,
    policy: BuildingAccessPolicy = DEFAULT_POLICY,
) -> bool:
    """Read decision for a building already proven to be in the caller's org."""
    user_id = context.user_id
    if not user_id:
        return False

    if _has_global_permissions(context, policy):
        return True

    if assignment_for(context, building_id) is not None:
        return True

    if policy.allow_resident:
        return has_active_occupancy(building_id, user_id, context.client)

    return False


def decide_write(
    context: RequestContext,
    building_id: str,
    policy: BuildingAccessPolicy = DEFAULT_POLICY,
) -> bool:
    """Write decision for a building already proven to be in the caller's org."""
    user_id = context.user_id
    if not user_id:
        return False

    if _has_global_permissions(context, policy):
        return True

    assignment = assignment_for(context, building_id)
    if assignment == AssignmentType.BUILDING_ADMIN:
        return True
    if policy.allow_manager_write and assignment == AssignmentType.MANAGER:
        return True

    logger.debug(
        f"Write denied on building {building_id} for user {user_id} "
        f"(assignment={assignment})"
    )
    return False


def can_read_building_resource(
    identity: Optional[Identity],
    building_id: str,
    policy: BuildingAccessPolicy = DEFAULT_POLICY,
    context: Optional[RequestContext] = None,
) -> bool:
    context = _scope(identity, building_id, context)
    return decide_read(context, building_id, policy)


def can_write_building_resource(
    identity: Optional[Identity],
    building_id: str,
    policy: BuildingAccessPolicy = DEFAULT_POLICY,
    context: Optional[RequestContext] = None,
) -> bool:
    context = _scope(identity, building_id, context)
    return decide_write(context, building_id, policy)
