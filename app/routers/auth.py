from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_profile
from app.core.limiter import limiter
from app.models.profile import Profile
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from app.schemas.profile import ProfileResponse
from app.services.auth import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request, payload: RegisterRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    """Create an account with email and password"""
    return auth_service.register(payload, db)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request, payload: LoginRequest, db: Session = Depends(get_db)
) -> AuthResponse:
    return auth_service.login(payload, db)


@router.get("/me", response_model=ProfileResponse)
async def get_me(profile: Profile = Depends(get_current_profile)):
    """Profile of the signed-in user"""
    return profile
