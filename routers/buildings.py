# routers/buildings.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from supabase import Client

from core import request_policies
from core.access_admin import assign_user_roles, require_active_member
from core.authorization import AuthorizationOutcome, building_access_summary
from core.errors import Conflict, InvalidRequest, NotFound, storage_error
from core.logging_config import logger
from core.request_context import RequestContext
from dependencies.auth import (
    building_read_access,
    building_write_access,
    get_db_client,
    get_request_context,
)
from models.access import (
    BuildingAccessPolicy,
    BuildingAccessSummary,
    BuildingAssignmentCreate,
    BuildingAssignmentRead,
    BuildingRead,
    OccupancyRead,
)
from models.enums import AssignmentType, RequestStatus

router = APIRouter(
    prefix="/org/buildings",
    tags=["Buildings"],
)


# ============================================================
# ENDPOINT POLICIES
# ============================================================
BUILDING_READ = BuildingAccessPolicy(required_permissions={"buildings.read"})
ACCESS_SUMMARY = BuildingAccessPolicy(allow_resident=True)
ASSIGNMENTS_READ = BuildingAccessPolicy(required_permissions={"building.assignments.read"})
# Managers may not hand out assignments (including BUILDING_ADMIN ones).
ASSIGNMENTS_WRITE = BuildingAccessPolicy(required_permissions={"building.assignments.write"})
OCCUPANCY_READ = BuildingAccessPolicy(required_permissions={"occupancy.read"})
UNITS_READ = BuildingAccessPolicy(required_permissions={"units.read"}, allow_resident=True)
REQUESTS_READ = BuildingAccessPolicy(required_permissions={"requests.read"})
REQUESTS_ASSIGN = BuildingAccessPolicy(
    required_permissions={"requests.assign"}, allow_manager_write=True
)
# Status updates are read-gated; staff rules below narrow them further.
REQUESTS_UPDATE_STATUS = BuildingAccessPolicy(required_permissions={"requests.update_status"})

# Role granted to anyone who receives a BUILDING_ADMIN assignment.
BUILDING_ADMIN_ROLE = "admin"


class AssignRequest(BaseModel):
    staff_user_id: str


class UpdateRequestStatus(BaseModel):
    status: RequestStatus


def _rows(client: Client, table: str, operation: str, **filters) -> list:
    try:
        query = client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        return query.execute().data or []
    except Exception as e:
        raise storage_error(e, operation) from e


# ============================================================
# BUILDING
# ============================================================
@router.get(
    "/{building_id}",
    response_model=BuildingRead,
    summary="Get Building",
)
def get_building(access: AuthorizationOutcome = Depends(building_read_access(BUILDING_READ))):
    return access.building


@router.get(
    "/{building_id}/access",
    response_model=BuildingAccessSummary,
    summary="Caller's access on a building",
    description="""
    Assignment type, resident status and plain read/write outcome for the
    calling user. Any user in the building's org may ask; users with no
    standing on the building get 403.
    """,
)
def get_my_building_access(
    building_id: str,
    access: AuthorizationOutcome = Depends(building_read_access(ACCESS_SUMMARY)),
    context: RequestContext = Depends(get_request_context),
):
    return building_access_summary(context, building_id)


# ============================================================
# ASSIGNMENTS
# ============================================================
@router.get(
    "/{building_id}/assignments",
    response_model=List[BuildingAssignmentRead],
    summary="List building assignments",
)
def list_assignments(
    building_id: str,
    access: AuthorizationOutcome = Depends(building_read_access(ASSIGNMENTS_READ)),
    client: Client = Depends(get_db_client),
):
    return _rows(
        client, "building_assignments", "Failed to list assignments", building_id=building_id
    )


@router.post(
    "/{building_id}/assignments",
    response_model=BuildingAssignmentRead,
    status_code=201,
    summary="Assign a user to a building",
)
def create_assignment(
    building_id: str,
    payload: BuildingAssignmentCreate,
    access: AuthorizationOutcome = Depends(building_write_access(ASSIGNMENTS_WRITE)),
    client: Client = Depends(get_db_client),
):
    require_active_member(payload.user_id, access.org_id, client)

    existing = _rows(
        client,
        "building_assignments",
        "Failed to load assignments",
        building_id=building_id,
        user_id=payload.user_id,
        type=payload.type.value,
    )
    if existing:
        raise Conflict("Assignment already exists")

    row = {
        "building_id": building_id,
        "user_id": payload.user_id,
        "type": payload.type.value,
    }
    try:
        result = client.table("building_assignments").insert(row).execute()
    except Exception as e:
        raise storage_error(e, "Failed to create assignment") from e

    if payload.type == AssignmentType.BUILDING_ADMIN:
        assign_user_roles(payload.user_id, [BUILDING_ADMIN_ROLE], mode="add", client=client)

    logger.info(
        f"User {access.user_id} assigned {payload.user_id} as {payload.type} "
        f"on building {building_id}"
    )
    return result.data[0]


# ============================================================
# OCCUPANCIES + UNITS
# ============================================================
@router.get(
    "/{building_id}/occupancies",
    response_model=List[OccupancyRead],
    summary="List occupancies",
)
def list_occupancies(
    building_id: str,
    access: AuthorizationOutcome = Depends(building_read_access(OCCUPANCY_READ)),
    client: Client = Depends(get_db_client),
):
    return _rows(client, "occupancies", "Failed to list occupancies", building_id=building_id)


@router.get(
    "/{building_id}/units",
    summary="List units",
    description="Residents with an active occupancy in the building may read this list.",
)
def list_units(
    building_id: str,
    access: AuthorizationOutcome = Depends(building_read_access(UNITS_READ)),
    client: Client = Depends(get_db_client),
):
    return {
        "success": True,
        "data": _rows(client, "units", "Failed to list units", building_id=building_id),
    }


# ============================================================
# MAINTENANCE REQUESTS
# ============================================================
def _find_request(client: Client, org_id: str, building_id: str, request_id: str) -> dict:
    rows = _rows(
        client,
        "maintenance_requests",
        "Failed to load request",
        id=request_id,
        building_id=building_id,
        org_id=org_id,
    )
    if not rows:
        raise NotFound("Request not found")
    return rows[0]


@router.get(
    "/{building_id}/requests",
    summary="List maintenance requests",
    description="Staff without `requests.read` only see requests assigned to them.",
)
def list_requests(
    building_id: str,
    status: Optional[str] = Query(None),
    access: AuthorizationOutcome = Depends(building_read_access(REQUESTS_READ)),
    context: RequestContext = Depends(get_request_context),
):
    filters = {"building_id": building_id, "org_id": access.org_id}
    if status:
        filters["status"] = status

    assigned_to = request_policies.staff_request_filter(context, building_id)
    if assigned_to:
        filters["assigned_to_user_id"] = assigned_to

    return {
        "success": True,
        "data": _rows(context.client, "maintenance_requests", "Failed to list requests", **filters),
    }


@router.get(
    "/{building_id}/requests/{request_id}",
    summary="Get maintenance request",
)
def get_request(
    building_id: str,
    request_id: str,
    access: AuthorizationOutcome = Depends(building_read_access(REQUESTS_READ)),
    context: RequestContext = Depends(get_request_context),
):
    request = _find_request(context.client, access.org_id, building_id, request_id)
    request_policies.assert_can_view_request(context, building_id, request)
    return request


@router.post(
    "/{building_id}/requests/{request_id}/assign",
    summary="Assign a maintenance request to staff",
)
def assign_request(
    building_id: str,
    request_id: str,
    payload: AssignRequest,
    access: AuthorizationOutcome = Depends(building_write_access(REQUESTS_ASSIGN)),
    context: RequestContext = Depends(get_request_context),
):
    request_policies.assert_can_assign_requests(context, building_id)
    request = _find_request(context.client, access.org_id, building_id, request_id)
    request_policies.assert_assignable(request)

    require_active_member(
        payload.staff_user_id, access.org_id, context.client, message="Staff user not in org"
    )
    staff = _rows(
        context.client,
        "building_assignments",
        "Failed to load assignments",
        building_id=building_id,
        user_id=payload.staff_user_id,
    )
    if not staff:
        raise InvalidRequest("Staff user not assigned to building")

    try:
        result = (
            context.client.table("maintenance_requests")
            .update({"assigned_to_user_id": payload.staff_user_id, "status": "ASSIGNED"})
            .eq("id", request["id"])
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to assign request") from e

    return result.data[0]


@router.patch(
    "/{building_id}/requests/{request_id}/status",
    summary="Update maintenance request status",
)
def update_request_status(
    building_id: str,
    request_id: str,
    payload: UpdateRequestStatus,
    access: AuthorizationOutcome = Depends(building_read_access(REQUESTS_UPDATE_STATUS)),
    context: RequestContext = Depends(get_request_context),
):
    request = _find_request(context.client, access.org_id, building_id, request_id)
    request_policies.assert_can_update_request_status(context, building_id, request)
    request_policies.assert_status_transition(request.get("status"), payload.status)

    try:
        result = (
            context.client.table("maintenance_requests")
            .update({"status": payload.status.value})
            .eq("id", request["id"])
            .execute()
        )
    except Exception as e:
        raise storage_error(e, "Failed to update request status") from e

    return result.data[0]
