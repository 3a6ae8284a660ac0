"""
User Repository

Data access layer for User model.

The auth core only talks to users through the ``UserDirectory``
interface, so any store that implements it (the SQLAlchemy repository
below, or an in-memory one in tests) can back it.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from social_auth.core.exceptions import ConflictError
from social_auth.repositories.base import BaseRepository
from social_auth.models import User

DUPLICATE_USER_MESSAGE = "A user with this email or username already exists"


def normalize_identifier(value: Optional[str]) -> Optional[str]:
    """Emails and usernames are compared case-insensitively."""
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


class UserDirectory(ABC):
    """
    Lookup and persistence of user records, as seen by the auth core.
    """

    @abstractmethod
    async def find_by_identifier(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None
    ) -> Optional[User]:
        """
        Find the user matching the email or the username.

        Returns None when neither is given or nothing matches. If both
        could match different rows, the first row wins.
        """
        pass

    @abstractmethod
    async def get_by_id(self, id: Any) -> Optional[User]:
        pass

    @abstractmethod
    async def get_all_users(self, skip: int = 0, limit: int = 100) -> List[User]:
        pass

    @abstractmethod
    async def create(self, **fields) -> User:
        """
        Persist a new user.

        Raises:
            ConflictError: If the email or username is taken
        """
        pass

    @abstractmethod
    async def save(self, user: User) -> None:
        """
        Write back changes made to a user.

        Raises:
            ConflictError: If the change violates a unique constraint
        """
        pass


class UserRepository(BaseRepository[User], UserDirectory):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    # =================
    # Find by email or username
    # =================
    async def find_by_identifier(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None
    ) -> Optional[User]:
        email = normalize_identifier(email)
        username = normalize_identifier(username)

        conditions = []
        if email:
            conditions.append(User.email == email)
        if username:
            conditions.append(User.username == username)
        if not conditions:
            return None

        result = await self.db.execute(
            select(User).where(or_(*conditions)).order_by(User.created_at).limit(1)
        )
        return result.scalars().first()

    # =================
    # Get all users
    # =================
    async def get_all_users(self, skip: int = 0, limit: int = 100) -> List[User]:
        """Get all users ordered by creation date."""
        return await self.get_all(skip=skip, limit=limit, order_by=User.created_at.desc())

    # =================
    # Create user
    # =================
    async def create(self, **fields) -> User:
        """Create a new user, lower-casing email and username."""
        fields["email"] = normalize_identifier(fields.get("email"))
        fields["username"] = normalize_identifier(fields.get("username"))

        try:
            return await super().create(**fields)
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(DUPLICATE_USER_MESSAGE) from e

    # =================
    # Save user
    # =================
    async def save(self, user: User) -> None:
        """Commit pending changes on a user."""
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(DUPLICATE_USER_MESSAGE) from e
