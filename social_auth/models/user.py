import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, String, Date, DateTime, Enum
from sqlalchemy.orm import relationship

from social_auth.core.clock import as_utc
from .base import BaseModel


class UserRole(str, enum.Enum):
    """Closed set of roles a user can hold."""
    ADMIN = "admin"
    USER = "user"


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "(reset_code IS NULL) = (reset_code_issued_at IS NULL)",
            name="ck_users_reset_code_pair",
        ),
    )

    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(
            UserRole,
            native_enum=False,
            length=20,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        default=UserRole.USER,
        nullable=False,
    )

    # Profile fields collected at signup
    name = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=True)
    status = Column(String(255), nullable=True)
    birthdate = Column(Date, nullable=True)

    # Tokens issued at or before this instant are rejected
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    # Present only while a password recovery is in progress
    reset_code = Column(String(6), nullable=True)
    reset_code_issued_at = Column(DateTime(timezone=True), nullable=True)

    followings = relationship(
        "Following",
        foreign_keys="Following.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    followers = relationship(
        "Follower",
        foreign_keys="Follower.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def changed_password_after(self, issued_at: datetime) -> bool:
        """True when the password changed at or after a token's issue time."""
        changed_at = as_utc(self.password_changed_at)
        if changed_at is None:
            return False
        return as_utc(issued_at) <= changed_at

    def set_reset_code(self, code: str, issued_at: datetime) -> None:
        self.reset_code = code
        self.reset_code_issued_at = issued_at

    def clear_reset_code(self) -> None:
        self.reset_code = None
        self.reset_code_issued_at = None
