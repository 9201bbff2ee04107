from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "TenantGate API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (primary store for users, roles, buildings)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None)
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None)

    # -------------------------------------------------
    # Access tokens
    # -------------------------------------------------
    JWT_SECRET_KEY: str = Field("change-me")
    JWT_ALGORITHM: str = "HS256"

    # -------------------------------------------------
    # Platform identities
    # -------------------------------------------------
    # Role key that lets an org-less identity act inside the org
    # named by the X-Org-Id header.
    PLATFORM_SUPERADMIN_ROLE: str = "platform_superadmin"

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


settings = Settings()
