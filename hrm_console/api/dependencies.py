"""Shared FastAPI dependencies: backends, the signed-in session, managers."""

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from supabase import Client, create_client

from hrm_console.core.config import settings
from hrm_console.core.errors import AuthError
from hrm_console.database.session import get_db
from hrm_console.schemas import ProfileRecord
from hrm_console.services.authorization import require_active
from hrm_console.services.data_service import DataService
from hrm_console.services.identity import IdentityService, IdentitySession, SupabaseIdentityService
from hrm_console.services.product_catalog import ProductCatalogManager
from hrm_console.services.sql_data_service import SqlDataService
from hrm_console.services.supabase_data_service import SupabaseDataService
from hrm_console.services.user_directory import UserDirectoryManager

bearer_scheme = HTTPBearer(auto_error=False)


def _supabase_client() -> Client:
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase not configured",
        )
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    return credentials.credentials if credentials else None


def get_data_service(
    access_token: str | None = Depends(get_access_token),
    db: Session = Depends(get_db),
) -> DataService:
    """Data backend for this request, acting as the caller when on Supabase."""
    if settings.DATA_BACKEND == "supabase":
        return SupabaseDataService(_supabase_client(), access_token)
    return SqlDataService(db)


def get_identity_service() -> IdentityService:
    return SupabaseIdentityService(_supabase_client())


def get_identity_session(
    identity: IdentityService = Depends(get_identity_service),
    data: DataService = Depends(get_data_service),
) -> IdentitySession:
    return IdentitySession(identity, data, allow_elevated_signup=settings.ALLOW_ELEVATED_SIGNUP)


def get_signed_in_session(
    access_token: str | None = Depends(get_access_token),
    session: IdentitySession = Depends(get_identity_session),
) -> IdentitySession:
    if not access_token:
        raise AuthError("Missing authorization header")
    session.restore(access_token)
    return session


def get_current_profile(session: IdentitySession = Depends(get_signed_in_session)) -> ProfileRecord:
    """Signed-in profile, blocked or not (used by /auth/me and sign-out)."""
    profile = session.require_profile()
    structlog.contextvars.bind_contextvars(profile_id=profile.id)
    return profile


def get_active_profile(profile: ProfileRecord = Depends(get_current_profile)) -> ProfileRecord:
    require_active(profile)
    return profile


def get_product_catalog(data: DataService = Depends(get_data_service)) -> ProductCatalogManager:
    return ProductCatalogManager(data)


def get_user_directory(data: DataService = Depends(get_data_service)) -> UserDirectoryManager:
    return UserDirectoryManager(data, enforce_block_permission=settings.ENFORCE_BLOCK_PERMISSION)
