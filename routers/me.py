# routers/me.py

from fastapi import APIRouter, Depends

from core.request_context import RequestContext
from dependencies.auth import get_request_context

router = APIRouter(
    prefix="/me",
    tags=["Me"],
)


# -----------------------------------------------------
# GET /me/permissions
# Effective permissions of the caller (no org required,
# platform identities use this too)
# -----------------------------------------------------
@router.get("/permissions", summary="My effective permissions")
def my_permissions(context: RequestContext = Depends(get_request_context)):
    return {
        "user_id": context.user_id,
        "org_id": context.identity.org_id,
        "permissions": sorted(context.effective_permissions),
    }
