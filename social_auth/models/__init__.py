from social_auth.models.base import Base
from social_auth.models.user import User, UserRole
from social_auth.models.follow import Following, Follower

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Following",
    "Follower",
]
