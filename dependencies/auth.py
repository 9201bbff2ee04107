from typing import Optional

from fastapi import Depends, Header, Path
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from supabase import Client

from core.access_admin import user_role_keys
from core.authorization import (
    AuthorizationOutcome,
    authorize_building_request,
    authorize_org_request,
)
from core.config import settings
from core.errors import Unauthenticated, storage_error
from core.logging_config import logger
from core.org_scope import normalize_org_id, parse_org_id_override
from core.request_context import RequestContext
from core.supabase_client import require_client
from models.access import BuildingAccessPolicy, Identity
from models.enums import AccessLevel


bearer_scheme = HTTPBearer(auto_error=False)

# Sentinel for "token carries no org_id claim" (distinct from an explicit null).
_NO_CLAIM = object()


def get_db_client() -> Client:
    return require_client()


# ============================================================
# TOKEN DECODING
# ============================================================
def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        raise Unauthenticated()

    if not payload.get("sub"):
        raise Unauthenticated()
    return payload


def create_access_token(user_id: str, org_id: Optional[str] = None, email: Optional[str] = None) -> str:
    """Mint a token in the shape decode_access_token expects (used by tests and scripts)."""
    claims = {"sub": user_id, "org_id": org_id}
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# ============================================================
# IDENTITY
# ============================================================
def load_identity(payload: dict, org_override: Optional[str], client: Client) -> Identity:
    """
    Turn verified token claims into an Identity.

    - the user must exist and be active
    - an org_id claim, when present, must match the stored org
    - a platform identity may act inside another org only when it holds
      the platform superadmin role; otherwise the header is ignored and
      the identity stays org-less
    """
    user_id = payload["sub"]

    try:
        result = client.table("users").select("*").eq("id", user_id).limit(1).execute()
    except Exception as e:
        raise storage_error(e, "Failed to load user") from e

    if not result.data:
        raise Unauthenticated()
    user = result.data[0]
    if not user.get("is_active", False):
        raise Unauthenticated()

    stored_org_id = normalize_org_id(user.get("org_id"))
    claimed = payload.get("org_id", _NO_CLAIM)
    if claimed is not _NO_CLAIM and normalize_org_id(claimed) != stored_org_id:
        logger.warning(f"Token org claim does not match stored org for user {user_id}")
        raise Unauthenticated()

    org_id = stored_org_id
    if stored_org_id is None and org_override:
        if settings.PLATFORM_SUPERADMIN_ROLE in user_role_keys(user_id, client):
            org_id = org_override
        else:
            logger.warning(f"Ignoring X-Org-Id from user {user_id} without platform role")

    return Identity(user_id=user_id, email=user.get("email"), org_id=org_id)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_org_id: Optional[str] = Header(None, alias="X-Org-Id"),
    client: Client = Depends(get_db_client),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    payload = decode_access_token(credentials.credentials)
    org_override = parse_org_id_override(x_org_id)
    return load_identity(payload, org_override, client)


def get_request_context(
    identity: Identity = Depends(get_current_identity),
    client: Client = Depends(get_db_client),
) -> RequestContext:
    # FastAPI caches this per request, so every guard on one request
    # shares the same memoized permission set.
    return RequestContext(identity, client)


# ============================================================
# ROUTE GUARDS
# ============================================================
def requires_permission(*permissions: str):
    """
    Org-scoped permission guard.

    Usage:
        @router.get("/roles", dependencies=[Depends(requires_permission("roles.read"))])
    """

    def dependency(context: RequestContext = Depends(get_request_context)) -> AuthorizationOutcome:
        return authorize_org_request(context, permissions)

    return dependency


def building_read_access(policy: BuildingAccessPolicy):
    """
    Guard for routes under a `{building_id}` path parameter.

    Usage:
        UNITS_READ = BuildingAccessPolicy(required_permissions={"units.read"}, allow_resident=True)

        @router.get("/{building_id}/units")
        def list_units(access: AuthorizationOutcome = Depends(building_read_access(UNITS_READ))):
            ...
    """

    def dependency(
        building_id: str = Path(...),
        context: RequestContext = Depends(get_request_context),
    ) -> AuthorizationOutcome:
        return authorize_building_request(context, building_id, AccessLevel.READ, policy)

    return dependency


def building_write_access(policy: BuildingAccessPolicy):
    def dependency(
        building_id: str = Path(...),
        context: RequestContext = Depends(get_request_context),
    ) -> AuthorizationOutcome:
        return authorize_building_request(context, building_id, AccessLevel.WRITE, policy)

    return dependency
