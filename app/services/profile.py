# app/services/profile.py

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import insert_or_ignore
from app.core.decorator import ErrorCode, ServiceError
from app.models.profile import PROFILE_ROLES, Profile
from app.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.id == profile_id).first()

    def get_profile_or_404(self, profile_id: str) -> Profile:
        profile = self.get_profile(profile_id)
        if not profile:
            raise ServiceError(ErrorCode.NOT_FOUND, "User profile not found", 404)
        return profile

    def ensure_profile(self, claims: Dict[str, Any]) -> None:
        """
        Create the profile for a signed-in subject if it does not exist yet.

        Uses insert-or-ignore on the primary key, so concurrent first
        requests for the same subject do not fail. Fields missing on an
        existing profile are backfilled from the token claims.
        """
        profile_id = str(claims["sub"])
        email = claims.get("email")
        if not email:
            raise ServiceError(
                ErrorCode.NOT_AUTHENTICATED, "Token does not carry an email claim", 401
            )

        try:
            created = insert_or_ignore(
                self.db,
                Profile,
                {
                    "id": profile_id,
                    "email": email.lower(),
                    "full_name": claims.get("full_name") or email,
                    "role": "user",
                    "is_active": True,
                },
                index_elements=["id"],
            )
            if not created:
                self._backfill(profile_id, claims)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ServiceError(
                ErrorCode.VALIDATION_ERROR,
                "Email is already registered to another account",
                409,
            )

        if created:
            logger.info(f"Profile created on first sign-in: {profile_id}")

    def _backfill(self, profile_id: str, claims: Dict[str, Any]) -> None:
        profile = self.get_profile(profile_id)
        if not profile:
            return
        if not profile.full_name and claims.get("full_name"):
            profile.full_name = claims["full_name"]
        if not profile.phone and claims.get("phone"):
            profile.phone = claims["phone"]

    def update_profile(self, profile: Profile, profile_in: ProfileUpdate) -> Profile:
        for field, value in profile_in.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

        self.db.commit()
        self.db.refresh(profile)
        return profile

    def get_profiles(
        self, page: int = 1, size: int = 20, search: Optional[str] = None
    ) -> Tuple[List[Profile], dict]:
        """Paginated profile listing with optional search on email and name"""
        query = self.db.query(Profile)

        if search:
            search_pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Profile.email.ilike(search_pattern),
                    Profile.full_name.ilike(search_pattern),
                )
            )

        total = query.count()
        profiles = (
            query.order_by(Profile.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )

        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": math.ceil(total / size) if size > 0 else 0,
        }
        return profiles, pagination

    def set_role(self, profile_id: str, role: str) -> Profile:
        if role not in PROFILE_ROLES:
            raise ServiceError(ErrorCode.VALIDATION_ERROR, f"Unknown role: {role}")

        profile = self.get_profile_or_404(profile_id)
        profile.role = role
        self.db.commit()
        self.db.refresh(profile)

        logger.info(f"Role of profile {profile_id} set to {role}")
        return profile
