# routers/health.py

from fastapi import APIRouter
from core.supabase_client import ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Checks Supabase connection + access table queries
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
def health_db():
    """
    Reports whether Supabase answers for each access table.
    - "not_configured" when URL or key is missing
    - "degraded" when any table query fails, with the error per table

    Open to uptime monitors; no token needed.
    """
    status = ping_supabase()
    return {
        "service": "Supabase",
        "status": status.get("status", "unknown"),
        "details": status,
    }


# -----------------------------------------------------
# GET /health/app
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    """
    Liveness check. Does not touch Supabase.
    """
    return {
        "service": "TenantGate API",
        "status": "ok",
    }
