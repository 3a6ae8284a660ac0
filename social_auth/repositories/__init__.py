from social_auth.repositories.base import BaseRepository
from social_auth.repositories.user_repo import UserDirectory, UserRepository
from social_auth.repositories.follow_repo import FollowRepository

__all__ = [
    "BaseRepository",
    "UserDirectory",
    "UserRepository",
    "FollowRepository",
]
