# models/access.py

from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.enums import AssignmentType, OccupancyStatus, PermissionEffect


# ===============================================================
# IDENTITY (result of token verification)
# ===============================================================
class Identity(BaseModel):
    """
    The acting user for one request.
    org_id is None for platform identities.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    email: Optional[str] = None
    org_id: Optional[str] = None


# ===============================================================
# PER-ENDPOINT BUILDING ACCESS POLICY
# ===============================================================
class BuildingAccessPolicy(BaseModel):
    """
    Static access declaration attached to a building-scoped route.

    required_permissions: global keys that grant access on their own
    allow_resident: residents with an ACTIVE occupancy may read
    allow_manager_write: MANAGER assignments may write
    """
    model_config = ConfigDict(frozen=True)

    required_permissions: FrozenSet[str] = frozenset()
    allow_resident: bool = False
    allow_manager_write: bool = False

    @field_validator("required_permissions", mode="before")
    @classmethod
    def _coerce_keys(cls, v):
        if isinstance(v, str):
            return frozenset([v])
        return frozenset(v or ())


# ===============================================================
# STORED ROWS
# ===============================================================
class BuildingRead(BaseModel):
    id: str
    org_id: str
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None


class BuildingAssignmentRead(BaseModel):
    id: Optional[str] = None
    building_id: str
    user_id: str
    type: AssignmentType


class BuildingAssignmentCreate(BaseModel):
    user_id: str
    type: AssignmentType


class OccupancyRead(BaseModel):
    id: Optional[str] = None
    building_id: str
    unit_id: str
    resident_user_id: str
    status: OccupancyStatus


class PermissionRead(BaseModel):
    key: str
    name: Optional[str] = None
    description: Optional[str] = None


class RoleRead(BaseModel):
    id: str
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    is_system: bool = False
    permissions: List[str] = []


class RoleCreate(BaseModel):
    key: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class PermissionOverride(BaseModel):
    permission_key: str
    effect: PermissionEffect


# ===============================================================
# ADMIN REQUEST BODIES
# ===============================================================
class SetRolePermissions(BaseModel):
    permission_keys: List[str]
    mode: str = Field("replace", pattern="^(add|replace)$")


class AssignUserRoles(BaseModel):
    role_keys: List[str]
    mode: str = Field("replace", pattern="^(add|replace)$")


class SetUserPermissions(BaseModel):
    overrides: List[PermissionOverride]


# ===============================================================
# RESPONSES
# ===============================================================
class UserAccessRead(BaseModel):
    user_id: str
    roles: List[str]
    overrides: List[PermissionOverride]
    effective_permissions: List[str]


class BuildingAccessSummary(BaseModel):
    building_id: str
    assignment_type: Optional[AssignmentType] = None
    has_active_occupancy: bool = False
    can_read: bool
    can_write: bool
