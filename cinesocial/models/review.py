from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from cinesocial.database import Base, generate_uuid, utcnow

MIN_RATING = 1
MAX_RATING = 10


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("Profile", back_populates="reviews")
    movie = relationship("Movie")
    comments = relationship("Comment", back_populates="review", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}", name="chk_review_rating"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, user_id={self.user_id}, movie_id={self.movie_id}, rating={self.rating})>"


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    review_id = Column(String(36), ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    review = relationship("Review", back_populates="comments")
    user = relationship("Profile")
    votes = relationship("CommentVote", back_populates="comment", cascade="all, delete-orphan")


class CommentVote(Base):
    """Up (+1) or down (-1) vote; one per user per comment"""
    __tablename__ = "comment_votes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    comment_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    vote_type = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    comment = relationship("Comment", back_populates="votes")

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="unique_comment_user_vote"),
        CheckConstraint("vote_type IN (1, -1)", name="chk_vote_type"),
    )
