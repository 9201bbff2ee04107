# ============================================
# PERMISSION CATALOG + SYSTEM ROLE MAP
# ============================================
from typing import Dict, List

from models.enums import AssignmentType


# =====================================================
# PERMISSIONS: key -> human readable description
# =====================================================
PERMISSIONS: Dict[str, str] = {
    # Users & roles
    "users.read": "View user records",
    "users.write": "Create/update users",
    "roles.read": "View roles and permissions",
    "roles.write": "Create/update roles",

    # Buildings
    "buildings.read": "View buildings",
    "buildings.write": "Create/update buildings",
    "building.assignments.read": "View building assignments",
    "building.assignments.write": "Create building assignments",

    # Units
    "units.read": "View units",
    "units.write": "Create/update units",
    "unitTypes.read": "View unit types",
    "unitTypes.write": "Create/update unit types",

    # Residents & occupancy
    "occupancy.read": "View occupancies",
    "occupancy.write": "Assign/end occupancies",
    "residents.read": "View residents",
    "residents.write": "Create residents",
    "owners.read": "View owners",
    "owners.write": "Create/update owners",

    # Maintenance requests
    "requests.read": "View all maintenance requests",
    "requests.assign": "Assign maintenance requests to staff",
    "requests.update_status": "Update maintenance request status",
    "requests.comment": "Comment on maintenance requests",

    # Org profile
    "org.profile.write": "Update organization profile",

    # Platform (org-less identities only)
    "platform.org.read": "View organizations",
    "platform.org.create": "Create organizations",
    "platform.org.admin.read": "View organization admins",
    "platform.org.admin.create": "Create organization admins",
}

PLATFORM_PERMISSIONS: List[str] = [
    key for key in PERMISSIONS if key.startswith("platform.")
]

ORG_PERMISSIONS: List[str] = [
    key for key in PERMISSIONS if not key.startswith("platform.")
]


# =====================================================
# SYSTEM ROLES: seeded, never deleted
# =====================================================
ROLE_PERMISSIONS: Dict[str, List[str]] = {

    # Full access inside an org
    "super_admin": list(ORG_PERMISSIONS),

    # Org-less operator identities
    "platform_superadmin": list(PLATFORM_PERMISSIONS),

    # Org administrator (provisioned together with the org)
    "org_admin": list(ORG_PERMISSIONS),

    # Org admin without role management
    "admin": [
        "users.read", "users.write",
        "roles.read",
        "buildings.read", "buildings.write",
        "building.assignments.read", "building.assignments.write",
        "units.read", "units.write",
        "unitTypes.read", "unitTypes.write",
        "occupancy.read", "occupancy.write",
        "residents.read", "residents.write",
        "owners.read", "owners.write",
        "requests.read", "requests.assign",
        "requests.update_status", "requests.comment",
    ],

    # Read-only
    "viewer": [
        "users.read",
        "roles.read",
        "buildings.read",
        "units.read",
        "unitTypes.read",
    ],
}

ROLE_DESCRIPTIONS: Dict[str, tuple] = {
    "super_admin": ("Super Admin", "Full access"),
    "platform_superadmin": ("Platform Super Admin", "Manage organizations"),
    "org_admin": ("Org Admin", "Organization administrator"),
    "admin": ("Admin", "Manage users and buildings"),
    "viewer": ("Viewer", "Read-only access"),
}


# =====================================================
# BUILDING ASSIGNMENT PRIORITY (highest first)
# =====================================================
ASSIGNMENT_PRIORITY = (
    AssignmentType.BUILDING_ADMIN,
    AssignmentType.MANAGER,
    AssignmentType.STAFF,
)


def is_known_permission(key: str) -> bool:
    return key in PERMISSIONS


def seed_rows() -> dict:
    """
    Rows a provisioning script upserts to install the catalog.

    Returns a dict with "permissions", "roles" and "role_permissions"
    lists. Role rows are keyed by role key; the script maps them to ids
    after upserting.
    """
    permissions = [
        {"key": key, "name": key, "description": description}
        for key, description in PERMISSIONS.items()
    ]
    roles = [
        {
            "key": role_key,
            "name": ROLE_DESCRIPTIONS[role_key][0],
            "description": ROLE_DESCRIPTIONS[role_key][1],
            "is_system": True,
        }
        for role_key in ROLE_PERMISSIONS
    ]
    role_permissions = [
        {"role_key": role_key, "permission_key": permission_key}
        for role_key, keys in ROLE_PERMISSIONS.items()
        for permission_key in keys
    ]
    return {
        "permissions": permissions,
        "roles": roles,
        "role_permissions": role_permissions,
    }
