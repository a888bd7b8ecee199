from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from cinesocial.database import Base, generate_uuid, utcnow


class UserFollow(Base):
    """Directed follow edge: follower -> following"""
    __tablename__ = "user_follows"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    follower_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    follower = relationship("Profile", foreign_keys=[follower_id])
    following = relationship("Profile", foreign_keys=[following_id])

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="unique_user_follow"),
    )

    def __repr__(self):
        return f"<UserFollow(follower_id={self.follower_id}, following_id={self.following_id})>"
