from sqlalchemy import Boolean, Column, Date, DateTime, String, Text
from sqlalchemy.sql import func

from app.core.database import Base

PROFILE_ROLES = ("user", "admin", "superadmin")
ADMIN_ROLES = ("admin", "superadmin")


class Profile(Base):
    """
    A marketplace user. The primary key is the authentication subject, so a
    profile can be created lazily the first time a signed-in user is seen.
    """

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)

    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)  # NULL for external sign-in

    full_name = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    avatar_url = Column(Text, nullable=True)

    role = Column(String(20), default="user", nullable=False)  # user, admin, superadmin
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def __repr__(self):
        return f"<Profile(id='{self.id}', email='{self.email}', role='{self.role}')>"
