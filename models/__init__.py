# -------------------------
# Identity + Policy
# -------------------------
from .access import (
    Identity,
    BuildingAccessPolicy,
)

# -------------------------
# Building Models
# -------------------------
from .access import (
    BuildingRead,
    BuildingAssignmentRead,
    BuildingAssignmentCreate,
    BuildingAccessSummary,
    OccupancyRead,
)

# -------------------------
# Roles + Permissions
# -------------------------
from .access import (
    PermissionRead,
    PermissionOverride,
    RoleRead,
    RoleCreate,
    SetRolePermissions,
    AssignUserRoles,
    SetUserPermissions,
    UserAccessRead,
)

# -------------------------
# Enums
# -------------------------
from .enums import (
    AssignmentType,
    PermissionEffect,
    OccupancyStatus,
    RequestStatus,
    AccessLevel,
)

__all__ = [
    # identity + policy
    "Identity",
    "BuildingAccessPolicy",

    # buildings
    "BuildingRead",
    "BuildingAssignmentRead",
    "BuildingAssignmentCreate",
    "BuildingAccessSummary",
    "OccupancyRead",

    # roles + permissions
    "PermissionRead",
    "PermissionOverride",
    "RoleRead",
    "RoleCreate",
    "SetRolePermissions",
    "AssignUserRoles",
    "SetUserPermissions",
    "UserAccessRead",

    # enums
    "AssignmentType",
    "PermissionEffect",
    "OccupancyStatus",
    "RequestStatus",
    "AccessLevel",
]
