# core/request_policies.py

"""
Maintenance-request rules for STAFF assignments.

These sit on top of the generic building decision: a STAFF user already
passed the building read check through their assignment, and these rules
narrow what they may do with individual requests. Holding the global
`requests.read` permission lifts the narrowing for viewing.
"""

from typing import Dict, FrozenSet, Optional

from core.building_access import assignment_for
from core.errors import Conflict, Forbidden
from core.request_context import RequestContext
from models.enums import AssignmentType, RequestStatus

REQUESTS_READ = "requests.read"

# Allowed next statuses; COMPLETED and CANCELED are terminal.
STATUS_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.OPEN: frozenset({RequestStatus.ASSIGNED}),
    RequestStatus.ASSIGNED: frozenset({RequestStatus.IN_PROGRESS}),
    RequestStatus.IN_PROGRESS: frozenset({RequestStatus.COMPLETED}),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.CANCELED: frozenset(),
}

ASSIGNABLE_STATUSES = frozenset({RequestStatus.OPEN, RequestStatus.ASSIGNED})


def assert_status_transition(current: Optional[str], target: str):
    allowed = {
        status.value
        for source, targets in STATUS_TRANSITIONS.items()
        if source.value == str(current)
        for status in targets
    }
    if str(target) not in allowed:
        raise Conflict("Invalid status transition")


def assert_assignable(request: dict):
    if request.get("status") not in {status.value for status in ASSIGNABLE_STATUSES}:
        raise Conflict("Request is not open or assigned")


def _is_staff(context: RequestContext, building_id: str) -> bool:
    return assignment_for(context, building_id) == AssignmentType.STAFF


def staff_request_filter(context: RequestContext, building_id: str) -> Optional[str]:
    """
    Return the user id to filter a request listing by, or None for no
    filter. Staff without `requests.read` only see requests assigned to
    them.
    """
    if _is_staff(context, building_id) and REQUESTS_READ not in context.effective_permissions:
        return context.user_id
    return None


def assert_can_view_request(context: RequestContext, building_id: str, request: dict):
    if staff_request_filter(context, building_id) is None:
        return
    if request.get("assigned_to_user_id") != context.user_id:
        raise Forbidden()


def assert_can_assign_requests(context: RequestContext, building_id: str):
    if _is_staff(context, building_id):
        raise Forbidden("Staff cannot assign requests")


def assert_can_update_request_status(context: RequestContext, building_id: str, request: dict):
    if _is_staff(context, building_id) and request.get("assigned_to_user_id") != context.user_id:
        raise Forbidden()
