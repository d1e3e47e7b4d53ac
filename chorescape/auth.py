import logging
from typing import Optional

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .database import get_db
from .errors import (
    AuthorizationError,
    ConflictError,
    UnauthenticatedError,
    UpstreamUnavailableError,
)
from .fallback import DatastoreUnavailable
from .models import Profile, Role

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our own 401 body
security = HTTPBearer(auto_error=False)


class IdentityUser(BaseModel):
    """User as reported by the identity provider"""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class SupabaseIdentityProvider:
    """Validates bearer tokens against the Supabase auth API"""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def get_user(self, token: str) -> IdentityUser:
        try:
            response = await self.client.get(
                f"{self.base_url}/auth/v1/user",
                headers={"apikey": self.service_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Identity provider unreachable: {str(e)}")
            raise UpstreamUnavailableError("Authentication service unavailable") from e

        if response.status_code >= 500:
            logger.error(f"❌ Identity provider error: HTTP {response.status_code}")
            raise UpstreamUnavailableError("Authentication service unavailable")

        if response.status_code != 200:
            logger.warning(f"⚠️ Token rejected by identity provider: HTTP {response.status_code}")
            raise UnauthenticatedError("Invalid or expired token")

        payload = response.json()
        if not payload.get("id"):
            raise UnauthenticatedError("Invalid or expired token")

        metadata = payload.get("user_metadata") or {}
        return IdentityUser(
            id=payload["id"],
            email=payload.get("email"),
            name=metadata.get("name") or metadata.get("full_name"),
        )

    async def aclose(self):
        await self.client.aclose()


def get_identity_provider(request: Request):
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        logger.error("❌ Identity provider not configured (SUPABASE_URL / SUPABASE_SECRET_KEY)")
        raise UpstreamUnavailableError("Authentication service not configured")
    return provider


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider=Depends(get_identity_provider),
) -> IdentityUser:
    """Resolve the bearer token to an identity provider user"""
    if not credentials or not credentials.credentials:
        raise UnauthenticatedError("No token provided")

    identity = await provider.get_user(credentials.credentials)
    logger.debug(f"✅ Token verified for user: {identity.id}")
    return identity


def get_or_create_profile(db: Session, identity: IdentityUser) -> Profile:
    """Find the caller's profile, creating a CUSTOMER profile on first use"""
    profile = db.query(Profile).filter(Profile.user_id == identity.id).first()
    if profile:
        return profile

    email = identity.email.strip().lower() if identity.email else None

    # Same email registered under a different identity (e.g. password then OAuth sign in)
    if email:
        existing = db.query(Profile).filter(Profile.email == email).first()
        if existing:
            logger.info(f"🔄 Relinking profile {email} from user {existing.user_id} to {identity.id}")
            existing.user_id = identity.id
            if identity.name and not existing.full_name:
                existing.full_name = identity.name
            db.commit()
            db.refresh(existing)
            return existing

    logger.info(f"🆕 Creating customer profile for user {identity.id}")
    profile = Profile(
        user_id=identity.id,
        email=email,
        full_name=identity.name,
        role=Role.CUSTOMER,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Another request for the same identity won the insert
        profile = db.query(Profile).filter(Profile.user_id == identity.id).first()
        if profile:
            return profile
        logger.error(f"❌ Email {email} was taken by another account")
        raise ConflictError("This email is already registered to another account") from e

    db.refresh(profile)
    return profile


async def get_current_profile(
    identity: IdentityUser = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> Profile:
    return get_or_create_profile(db, identity)


def require_role(*roles: Role, degrade: bool = False):
    """
    Build a dependency that only lets profiles with one of `roles` through.

    The role is read from the database on every request, never from the token.
    With degrade=True a datastore failure during that read yields a
    DatastoreUnavailable marker for degrade_on_error handlers instead of raising.
    """
    allowed = set(roles)

    async def role_gate(
        identity: IdentityUser = Depends(get_current_identity),
        db: Session = Depends(get_db),
    ):
        try:
            profile = db.query(Profile).filter(Profile.user_id == identity.id).first()
        except SQLAlchemyError as e:
            if not degrade:
                raise
            logger.error(f"❌ Role lookup failed for user {identity.id}: {str(e)}")
            return DatastoreUnavailable(e)

        if not profile:
            logger.warning(f"⚠️ No profile for user {identity.id}")
            raise AuthorizationError("User profile not found")

        if not profile.is_active:
            logger.warning(f"⚠️ Inactive profile {profile.id} denied")
            raise AuthorizationError("Account is deactivated")

        if profile.role not in allowed:
            required = ", ".join(sorted(r.value for r in allowed))
            logger.warning(
                f"⚠️ Profile {profile.id} with role {profile.role.value} denied (requires {required})"
            )
            raise AuthorizationError(
                f"Access denied. Required role: {required}. Your role: {profile.role.value}"
            )

        return profile

    return role_gate


require_worker = require_role(Role.WORKER)
require_admin = require_role(Role.ADMIN)
# Only for handlers wrapped in degrade_on_error
require_admin_or_degraded = require_role(Role.ADMIN, degrade=True)
