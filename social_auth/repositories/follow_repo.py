"""
Follow Repository

Writes the two rows that make one user follow another.
"""

from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession

from social_auth.repositories.base import BaseRepository
from social_auth.models import Following, Follower


class FollowRepository(BaseRepository[Following]):
    """Repository for the Following/Follower pair."""

    def __init__(self, db: AsyncSession):
        super().__init__(Following, db)

    async def follow(self, user_id: Any, target_user_id: Any) -> None:
        """
        Make ``user_id`` follow ``target_user_id``.

        Both rows go in under a savepoint: if either insert fails, only
        these rows are rolled back and objects already committed in the
        session (the new user) stay usable.
        """
        async with self.db.begin_nested():
            self.db.add(Following(user_id=user_id, following_user_id=target_user_id))
            self.db.add(Follower(user_id=target_user_id, follower_user_id=user_id))
        await self.db.commit()
