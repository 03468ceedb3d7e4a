# core/security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt

from app.core.config import settings
from app.core.decorator import ErrorCode, ServiceError
from app.models.profile import Profile

logger = logging.getLogger(__name__)


class JWTManager:
    """JWT token management for authentication"""

    def __init__(self):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.user_token_expire = timedelta(days=settings.jwt_user_expiration)
        self.issuer = settings.jwt_issuer

    def create_access_token(
        self,
        profile: Profile,
        custom_expiration: Optional[timedelta] = None,
    ) -> str:
        """
        Create JWT access token for a profile

        Args:
            profile: Profile model instance
            custom_expiration: Override default expiration

        Returns:
            JWT access token string
        """
        now = datetime.now(timezone.utc)
        expire = now + (custom_expiration or self.user_token_expire)

        payload = {
            "sub": str(profile.id),
            "email": profile.email,
            "role": profile.role,
            "full_name": profile.full_name,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
            "iss": self.issuer,
            "type": "access",
        }

        try:
            token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            logger.error(f"Failed to create access token: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create access token",
            )

        logger.info(f"Access token created for profile: {profile.id}")
        return token

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode JWT token.

        Raises ServiceError(NOT_AUTHENTICATED) when the token is invalid, expired,
        of the wrong type, or issued by someone else.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": True, "verify_aud": False},
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise ServiceError(
                ErrorCode.NOT_AUTHENTICATED, "Invalid or expired token", 401
            )

        if payload.get("type") != token_type:
            raise ServiceError(
                ErrorCode.NOT_AUTHENTICATED,
                f"Invalid token type. Expected {token_type}",
                401,
            )

        if payload.get("iss") != self.issuer:
            raise ServiceError(ErrorCode.NOT_AUTHENTICATED, "Invalid token issuer", 401)

        if not payload.get("sub"):
            raise ServiceError(
                ErrorCode.NOT_AUTHENTICATED, "Invalid token: missing subject", 401
            )

        return payload

    def get_token_expiration(self, token: str) -> Optional[datetime]:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        exp_timestamp = payload.get("exp")
        if exp_timestamp:
            return datetime.fromtimestamp(exp_timestamp, tz=timezone.utc)
        return None


jwt_manager = JWTManager()
