"""Identity service adapters and the signed-in session.

``IdentityService`` is the authentication backend (Supabase Auth in
production). ``IdentitySession`` pairs an authenticated identity with its
``profiles`` row; ``loading`` is True while that pair is being fetched and no
authorization decision may be taken until ``require_profile`` passes.
"""

import abc
import logging
from dataclasses import dataclass

from supabase import AuthError as SupabaseAuthError
from supabase import Client

from hrm_console.core.errors import AuthError, AuthorizationDenied, ConsoleError, SessionNotReady
from hrm_console.database.base import utcnow
from hrm_console.models.enums import ProfileStatus, Role
from hrm_console.schemas import ProfileRecord
from hrm_console.services.data_service import PROFILES, DataService

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    id: str
    email: str
    access_token: str | None = None


class IdentityService(abc.ABC):
    @abc.abstractmethod
    def sign_in(self, email: str, password: str) -> Identity:
        ...

    @abc.abstractmethod
    def sign_up(self, email: str, password: str) -> Identity:
        ...

    @abc.abstractmethod
    def sign_out(self, access_token: str) -> None:
        ...

    @abc.abstractmethod
    def get_user(self, access_token: str) -> Identity:
        ...


class SupabaseIdentityService(IdentityService):
    def __init__(self, client: Client):
        self.client = client

    def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as e:
            raise AuthError(e.message) from e

        if not response.user or not response.session:
            raise AuthError("Invalid login credentials")
        return Identity(
            id=str(response.user.id),
            email=response.user.email or email,
            access_token=response.session.access_token,
        )

    def sign_up(self, email: str, password: str) -> Identity:
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except SupabaseAuthError as e:
            raise AuthError(e.message) from e

        if not response.user:
            raise AuthError("Could not create account")
        token = response.session.access_token if response.session else None
        return Identity(id=str(response.user.id), email=response.user.email or email, access_token=token)

    def sign_out(self, access_token: str) -> None:
        """Revoke ``access_token``; an already revoked token is not an error."""
        try:
            self.client.auth.admin.sign_out(access_token)
        except SupabaseAuthError as e:
            logger.info("Sign-out on an inactive session: %s", e.message)

    def get_user(self, access_token: str) -> Identity:
        try:
            user_response = self.client.auth.get_user(access_token)
        except SupabaseAuthError as e:
            raise AuthError(e.message) from e

        if not user_response or not user_response.user:
            raise AuthError("Invalid authentication credentials")
        user = user_response.user
        return Identity(id=str(user.id), email=user.email or "", access_token=access_token)


class IdentitySession:
    def __init__(
        self,
        identity: IdentityService,
        data: DataService,
        allow_elevated_signup: bool = True,
    ):
        self.identity = identity
        self.data = data
        self.allow_elevated_signup = allow_elevated_signup

        self.user: Identity | None = None
        self.profile: ProfileRecord | None = None
        self.loading = False

    def sign_in(self, email: str, password: str) -> ProfileRecord:
        """Authenticate and load the profile; the session stays unset on failure."""
        email = email.strip().lower()
        self.loading = True
        try:
            user = self.identity.sign_in(email, password)
            self.data.authenticate(user.access_token)
            try:
                profile = self._fetch_profile(user.id)
            except ConsoleError:
                self.identity.sign_out(user.access_token)
                raise
        finally:
            self.loading = False

        self.user, self.profile = user, profile
        logger.info("Signed in", extra={"profile_id": profile.id})
        return profile

    def restore(self, access_token: str) -> ProfileRecord:
        """Rebuild the session from a bearer token issued by ``sign_in``."""
        self.loading = True
        try:
            user = self.identity.get_user(access_token)
            self.data.authenticate(access_token)
            profile = self._fetch_profile(user.id)
        finally:
            self.loading = False

        self.user, self.profile = user, profile
        return profile

    def sign_up(self, email: str, password: str, full_name: str | None, role: Role) -> ProfileRecord:
        """Create the identity and its active profile. Does not sign in."""
        role = Role(role)
        email = email.strip().lower()
        if role != Role.user:
            if not self.allow_elevated_signup:
                raise AuthorizationDenied("Self sign-up is limited to the user role")
            logger.warning("Self-assigned elevated role at sign-up", extra={"email": email, "role": role.value})

        user = self.identity.sign_up(email, password)
        if user.access_token:
            self.data.authenticate(user.access_token)

        now = utcnow()
        try:
            row = self.data.insert(
                PROFILES,
                {
                    "id": user.id,
                    "email": email,
                    "full_name": full_name or None,
                    "role": role,
                    "status": ProfileStatus.active,
                    "created_at": now,
                    "updated_at": now,
                },
            )
        finally:
            # Sign-up never leaves a signed-in session behind
            if user.access_token:
                self.identity.sign_out(user.access_token)
        logger.info("Account created", extra={"profile_id": user.id, "role": role.value})
        return ProfileRecord.model_validate(row)

    def sign_out(self) -> None:
        token = self.user.access_token if self.user else None
        self.user = None
        self.profile = None
        if token:
            self.identity.sign_out(token)

    def refresh_profile(self) -> ProfileRecord:
        if self.user is None:
            raise SessionNotReady("Not signed in")
        self.loading = True
        try:
            self.profile = self._fetch_profile(self.user.id)
        finally:
            self.loading = False
        return self.profile

    def require_profile(self) -> ProfileRecord:
        if self.loading:
            raise SessionNotReady("Session is still loading")
        if self.user is None or self.profile is None:
            raise SessionNotReady("Not signed in")
        return self.profile

    def _fetch_profile(self, user_id: str) -> ProfileRecord:
        row = self.data.get(PROFILES, user_id)
        if row is None:
            raise AuthError("No profile exists for this account")
        return ProfileRecord.model_validate(row)
