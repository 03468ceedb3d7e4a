# app/routers/user.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_profile
from app.models.profile import Profile
from app.schemas.course import CoursePublicResponse
from app.schemas.profile import ProfileResponse, ProfileUpdate
from app.schemas.purchase import PurchaseResponse
from app.services.access import AccessService
from app.services.entitlement import EntitlementService
from app.services.profile import ProfileService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(
    profile_in: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return ProfileService(db).update_profile(profile, profile_in)


@router.get("/me/courses", response_model=List[CoursePublicResponse])
def get_my_courses(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Courses the user can currently watch"""
    courses = AccessService(db).list_accessible_courses(profile.id)
    return [
        CoursePublicResponse.model_validate(course).model_copy(
            update={"has_access": True}
        )
        for course in courses
    ]


@router.get("/me/purchases", response_model=List[PurchaseResponse])
def get_my_purchases(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return EntitlementService(db).get_purchases(profile.id)
