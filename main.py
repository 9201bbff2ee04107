import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Core
from core.config import settings
from core.errors import AccessError
from core.logging_config import logger

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.access_control import router as access_control_router
from routers.buildings import router as buildings_router
from routers.health import router as health_router
from routers.me import router as me_router


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or str(uuid.uuid4())


def error_body(code: str, message: str, request_id: str) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message},
        "request_id": request_id,
    }


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="TenantGate API: org-scoped building access control",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(AccessError)
    async def handle_access_error(request: Request, exc: AccessError):
        if exc.status_code in (401, 403):
            logger.warning(
                f"{exc.code} at {request.url.path}: {exc.message} (stage={exc.stage})"
            )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message, _request_id(request)),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("HTTP_ERROR", str(exc.detail), _request_id(request)),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error(f"Unhandled error at {request.url}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_SERVER_ERROR", "Internal server error", _request_id(request)),
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(me_router)
    app.include_router(access_control_router)
    app.include_router(buildings_router)
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
