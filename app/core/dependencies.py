import logging
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.cache import ProfileExistenceCache, get_profile_cache
from app.core.database import get_db
from app.core.decorator import ErrorCode, ServiceError
from app.core.security import jwt_manager
from app.models.profile import Profile
from app.services.profile import ProfileService
from app.utils.stripe_service import StripeService, stripe_service

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _resolve_profile(
    token: str, db: Session, cache: ProfileExistenceCache
) -> Profile:
    payload = jwt_manager.verify_token(token, "access")
    profile_id = str(payload["sub"])

    # First sign-in creates the profile; the cache skips the write afterwards
    if not cache.exists(profile_id):
        ProfileService(db).ensure_profile(payload)
        cache.remember(profile_id)

    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        cache.forget(profile_id)
        raise ServiceError(
            ErrorCode.NOT_AUTHENTICATED,
            "User profile not found. Please sign out and back in.",
            401,
        )
    return profile


async def get_current_profile(
    credentials: HTTPAuthorizationCredentials = Security(security),
    db: Session = Depends(get_db),
    cache: ProfileExistenceCache = Depends(get_profile_cache),
) -> Profile:
    """
    Dependency that requires a valid Bearer token and returns the active profile.
    """
    if not credentials:
        raise ServiceError(ErrorCode.NOT_AUTHENTICATED, "Not authenticated", 401)

    profile = _resolve_profile(credentials.credentials, db, cache)

    if not profile.is_active:
        raise ServiceError(ErrorCode.UNAUTHORIZED, "Account is disabled", 403)

    return profile


async def get_optional_profile(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
    cache: ProfileExistenceCache = Depends(get_profile_cache),
) -> Optional[Profile]:
    """
    Returns the profile when a valid token is sent, or None for anonymous callers.
    """
    if not credentials:
        return None

    try:
        profile = _resolve_profile(credentials.credentials, db, cache)
    except ServiceError:
        return None

    return profile if profile.is_active else None


async def get_current_admin(
    profile: Profile = Depends(get_current_profile),
) -> Profile:
    if not profile.is_admin:
        logger.warning(f"Non-admin profile {profile.id} attempted an admin action")
        raise ServiceError(ErrorCode.UNAUTHORIZED, "Admin access required", 403)
    return profile


async def get_current_superadmin(
    profile: Profile = Depends(get_current_admin),
) -> Profile:
    if profile.role != "superadmin":
        raise ServiceError(ErrorCode.UNAUTHORIZED, "Superadmin access required", 403)
    return profile


def get_payment_processor() -> StripeService:
    return stripe_service
