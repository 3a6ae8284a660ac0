"""
Follow Models

The social graph is stored twice, once per direction:
- Following: user_id follows following_user_id
- Follower: follower_user_id follows user_id

Only signup writes these from the auth side (the default follow of the
platform account); everything else about the graph lives elsewhere.
"""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel


class Following(BaseModel):
    __tablename__ = "followings"
    __table_args__ = (
        UniqueConstraint("user_id", "following_user_id", name="uq_followings_pair"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", foreign_keys=[user_id], back_populates="followings")


class Follower(BaseModel):
    __tablename__ = "followers"
    __table_args__ = (
        UniqueConstraint("user_id", "follower_user_id", name="uq_followers_pair"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    follower_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", foreign_keys=[user_id], back_populates="followers")
