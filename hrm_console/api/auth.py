"""Sign-in, sign-up, sign-out and the current profile."""

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field

from hrm_console.api.dependencies import (
    get_access_token,
    get_current_profile,
    get_identity_session,
)
from hrm_console.core.errors import AuthError
from hrm_console.models.enums import Role
from hrm_console.schemas import ProfileRecord
from hrm_console.services.authorization import can_edit_catalog, can_manage_users, is_blocked
from hrm_console.services.identity import IdentitySession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str | None = None
    role: Role = Role.user


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: str | None
    role: str
    status: str
    created_at: str | None
    updated_at: str | None

    class Config:
        from_attributes = True


class CapabilitiesResponse(BaseModel):
    is_blocked: bool
    can_manage_users: bool
    can_edit_catalog: bool


class MeResponse(BaseModel):
    profile: ProfileResponse
    capabilities: CapabilitiesResponse


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse


def profile_response(profile: ProfileRecord) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        role=profile.role.value,
        status=profile.status.value,
        created_at=profile.created_at.isoformat() if profile.created_at else None,
        updated_at=profile.updated_at.isoformat() if profile.updated_at else None,
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/sign-in", response_model=SignInResponse)
def sign_in(body: SignInRequest, session: IdentitySession = Depends(get_identity_session)):
    profile = session.sign_in(body.email, body.password)
    return SignInResponse(
        access_token=session.user.access_token,
        profile=profile_response(profile),
    )


@router.post("/sign-up", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def sign_up(body: SignUpRequest, session: IdentitySession = Depends(get_identity_session)):
    """Create an account. The caller signs in separately afterwards."""
    profile = session.sign_up(body.email, body.password, body.full_name, body.role)
    return profile_response(profile)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(
    access_token: str | None = Depends(get_access_token),
    session: IdentitySession = Depends(get_identity_session),
):
    if access_token:
        try:
            session.restore(access_token)
        except AuthError:
            logger.info("Sign-out with an expired or unknown token")
        session.sign_out()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=MeResponse)
def me(profile: ProfileRecord = Depends(get_current_profile)):
    return MeResponse(
        profile=profile_response(profile),
        capabilities=CapabilitiesResponse(
            is_blocked=is_blocked(profile),
            can_manage_users=can_manage_users(profile),
            can_edit_catalog=can_edit_catalog(profile),
        ),
    )
