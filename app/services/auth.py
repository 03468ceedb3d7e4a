# app/services/auth.py
import logging
import uuid

from sqlalchemy.orm import Session

from app.core.decorator import ErrorCode, ServiceError
from app.core.hasher import PasswordHelper
from app.core.security import jwt_manager
from app.models.profile import Profile
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from app.schemas.profile import ProfileResponse

logger = logging.getLogger(__name__)


class AuthService:
    def register(self, request: RegisterRequest, db: Session) -> AuthResponse:
        """Create a password-based profile and sign it in"""
        existing = db.query(Profile).filter(Profile.email == request.email).first()
        if existing:
            raise ServiceError(
                ErrorCode.VALIDATION_ERROR, "Email is already registered", 409
            )

        profile = Profile(
            id=str(uuid.uuid4()),
            email=request.email,
            hashed_password=PasswordHelper.hash_password(request.password),
            full_name=request.full_name,
            phone=request.phone,
            date_of_birth=request.date_of_birth,
            role="user",
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)

        logger.info(f"Registered profile {profile.id}")
        return self._auth_response(profile)

    def login(self, request: LoginRequest, db: Session) -> AuthResponse:
        profile = db.query(Profile).filter(Profile.email == request.email).first()

        if not profile or not PasswordHelper.check_password(
            request.password, profile.hashed_password
        ):
            logger.warning(f"Failed login attempt for {request.email}")
            raise ServiceError(
                ErrorCode.NOT_AUTHENTICATED, "Invalid email or password", 401
            )

        if not profile.is_active:
            raise ServiceError(ErrorCode.UNAUTHORIZED, "Account is disabled", 403)

        return self._auth_response(profile)

    def _auth_response(self, profile: Profile) -> AuthResponse:
        token = jwt_manager.create_access_token(profile)
        return AuthResponse(
            access_token=token,
            expires_at=jwt_manager.get_token_expiration(token),
            profile=ProfileResponse.model_validate(profile),
        )


auth_service = AuthService()
