"""
Application initialization module
Handles initial setup tasks like creating the bootstrap superadmin profile
"""

import logging
import uuid

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.hasher import PasswordHelper
from app.models.profile import Profile

logger = logging.getLogger(__name__)


def init_superadmin(db: Session) -> None:
    """
    Create a superadmin profile from settings if no superadmin exists yet.

    Args:
        db: Database session
    """
    try:
        existing = db.query(Profile).filter(Profile.role == "superadmin").first()
        if existing:
            logger.info(f"✅ Superadmin already exists (ID: {existing.id})")
            return

        by_email = (
            db.query(Profile)
            .filter(Profile.email == settings.admin_default_email.lower())
            .first()
        )
        if by_email:
            by_email.role = "superadmin"
            db.commit()
            logger.info(f"✅ Promoted {by_email.email} to superadmin")
            return

        superadmin = Profile(
            id=str(uuid.uuid4()),
            email=settings.admin_default_email.lower(),
            full_name=settings.admin_default_name,
            hashed_password=PasswordHelper.hash_password(
                settings.admin_default_password
            ),
            role="superadmin",
        )
        db.add(superadmin)
        db.commit()

        logger.info("=" * 60)
        logger.info("🎉 SUPERADMIN CREATED")
        logger.info(f"Email: {superadmin.email}")
        logger.info("=" * 60)
        logger.warning("⚠️  IMPORTANT: Change the default password immediately!")

    except Exception as e:
        logger.error(f"❌ Failed to initialize superadmin: {e}")
        db.rollback()
        raise


def initialize_application(db: Session) -> None:
    """
    Run all application initialization tasks.

    Args:
        db: Database session
    """
    logger.info("🚀 Starting application initialization...")
    init_superadmin(db)
    logger.info("✅ Application initialization completed!")
