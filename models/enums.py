from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# BUILDING ASSIGNMENT TYPE
# -----------------------------------------------------
class AssignmentType(BaseStrEnum):
    """Building-scoped role held by a user on one building."""

    BUILDING_ADMIN = "BUILDING_ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


# -----------------------------------------------------
# PERMISSION OVERRIDE EFFECT
# -----------------------------------------------------
class PermissionEffect(BaseStrEnum):
    """Per-user override applied on top of role grants."""

    ALLOW = "ALLOW"
    DENY = "DENY"


# -----------------------------------------------------
# OCCUPANCY STATUS
# -----------------------------------------------------
class OccupancyStatus(BaseStrEnum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


# -----------------------------------------------------
# MAINTENANCE REQUEST STATUS
# -----------------------------------------------------
class RequestStatus(BaseStrEnum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


# -----------------------------------------------------
# ACCESS LEVEL
# -----------------------------------------------------
class AccessLevel(BaseStrEnum):
    """Kind of building decision an endpoint asks for."""

    READ = "read"
    WRITE = "write"
