# core/authorization.py

"""
Request authorization pipeline.

    AUTHENTICATED → ORG_SCOPED → RESOURCE_RESOLVED → PERMISSION_CHECKED
        → ALLOWED | DENIED

Each transition either advances or raises the AccessError that denies the
request; the stage that failed is recorded on the exception. The building
is always resolved inside the caller's org before any permission is
looked at.
"""

from typing import FrozenSet, Iterable, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from core.access_control import has_all_permissions
from core.building_access import (
    assignment_for,
    decide_read,
    decide_write,
    has_active_occupancy,
)
from core.errors import AccessError, Forbidden, Unauthenticated
from core.logging_config import logger
from core.org_scope import require_building_in_org, require_org_id
from core.request_context import RequestContext
from models.access import BuildingAccessPolicy
from models.enums import AccessLevel, AssignmentType, BaseStrEnum


class AuthorizationStage(BaseStrEnum):
    AUTHENTICATED = "authenticated"
    ORG_SCOPED = "org_scoped"
    RESOURCE_RESOLVED = "resource_resolved"
    PERMISSION_CHECKED = "permission_checked"
    ALLOWED = "allowed"
    DENIED = "denied"


class AuthorizationOutcome(BaseModel):
    """What an allowed request carries into its handler."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    stage: AuthorizationStage
    user_id: str
    org_id: str
    building: Optional[dict] = None
    effective_permissions: FrozenSet[str] = frozenset()
    assignment_type: Optional[AssignmentType] = None
    trail: List[AuthorizationStage] = []


class _Trail:
    def __init__(self, label: str):
        self.label = label
        self.stages: List[AuthorizationStage] = []

    def advance(self, stage: AuthorizationStage):
        self.stages.append(stage)
        logger.debug(f"{self.label}: {stage}")

    @property
    def current(self) -> Optional[AuthorizationStage]:
        return self.stages[-1] if self.stages else None

    def deny(self, error: AccessError) -> AccessError:
        error.stage = str(self.current) if self.current else None
        self.stages.append(AuthorizationStage.DENIED)
        logger.warning(f"{self.label}: denied after {error.stage} ({error.code})")
        return error


def _authenticate(context: RequestContext, trail: _Trail) -> str:
    if context.identity is None or not context.user_id:
        raise trail.deny(Unauthenticated())
    trail.advance(AuthorizationStage.AUTHENTICATED)
    return context.user_id


def _org_scope(context: RequestContext, trail: _Trail) -> str:
    try:
        org_id = require_org_id(context.identity)
    except AccessError as e:
        raise trail.deny(e)
    trail.advance(AuthorizationStage.ORG_SCOPED)
    return org_id


def authorize_building_request(
    context: RequestContext,
    building_id: str,
    level: AccessLevel,
    policy: BuildingAccessPolicy,
) -> AuthorizationOutcome:
    """
    Run the full pipeline for a building-scoped endpoint.

    Raises Unauthenticated, OrgScopeRequired, NotFound or Forbidden,
    in that order of precedence.
    """
    trail = _Trail(f"{level} building {building_id}")

    user_id = _authenticate(context, trail)
    org_id = _org_scope(context, trail)

    try:
        building = require_building_in_org(building_id, org_id, context.client)
    except AccessError as e:
        raise trail.deny(e)
    trail.advance(AuthorizationStage.RESOURCE_RESOLVED)

    if level == AccessLevel.READ:
        allowed = decide_read(context, building_id, policy)
    else:
        allowed = decide_write(context, building_id, policy)
    trail.advance(AuthorizationStage.PERMISSION_CHECKED)

    if not allowed:
        raise trail.deny(Forbidden())

    trail.advance(AuthorizationStage.ALLOWED)
    return AuthorizationOutcome(
        stage=AuthorizationStage.ALLOWED,
        user_id=user_id,
        org_id=org_id,
        building=building,
        effective_permissions=frozenset(context.effective_permissions),
        assignment_type=assignment_for(context, building_id),
        trail=list(trail.stages),
    )


def authorize_org_request(
    context: RequestContext,
    required_permissions: Iterable[str],
) -> AuthorizationOutcome:
    """
    Pipeline for org-scoped endpoints that are not tied to a building:
    authenticate, require an org, then require every listed permission.
    """
    required: Set[str] = set(required_permissions)
    trail = _Trail(f"org request {sorted(required)}")

    user_id = _authenticate(context, trail)
    org_id = _org_scope(context, trail)

    allowed = not required or has_all_permissions(context.effective_permissions, required)
    trail.advance(AuthorizationStage.PERMISSION_CHECKED)

    if not allowed:
        raise trail.deny(Forbidden("Missing required permissions"))

    trail.advance(AuthorizationStage.ALLOWED)
    return AuthorizationOutcome(
        stage=AuthorizationStage.ALLOWED,
        user_id=user_id,
        org_id=org_id,
        effective_permissions=frozenset(context.effective_permissions),
        trail=list(trail.stages),
    )


def building_access_summary(context: RequestContext, building_id: str) -> dict:
    """
    The caller's own standing on a building: assignment type, resident
    status and the outcome of a plain read/write decision. The building
    must already be resolved in the caller's org.
    """
    user_id = context.user_id
    assignment = assignment_for(context, building_id)
    resident = has_active_occupancy(building_id, user_id, context.client)
    return {
        "building_id": building_id,
        "assignment_type": assignment,
        "has_active_occupancy": resident,
        "can_read": assignment is not None or resident,
        "can_write": decide_write(context, building_id, BuildingAccessPolicy()),
    }
