"""Application configuration loaded from environment variables."""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./hrm_console.db"

    # "sql" talks to DATABASE_URL through SQLAlchemy, "supabase" to the hosted project
    DATA_BACKEND: str = "sql"

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
    ]

    API_V1_PREFIX: str = "/api/v1"

    # Supabase project (auth always, data when DATA_BACKEND == "supabase")
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Gate block/unblock on the overlay's can_block flag
    ENFORCE_BLOCK_PERMISSION: bool = False

    # Let sign-up pick admin / super_admin roles
    ALLOW_ELEVATED_SIGNUP: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
