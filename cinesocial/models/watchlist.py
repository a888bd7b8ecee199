from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from cinesocial.database import Base, generate_uuid, utcnow

LIST_TYPES = ("watchlist", "favorites", "watched")


class SavedMovie(Base):
    """
    Saved movie - a movie filed under one of the user's fixed lists
    (watchlist, favorites, watched)
    """
    __tablename__ = "saved_movies"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    list_type = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    user = relationship("Profile", back_populates="saved_movies")
    movie = relationship("Movie")

    # Ensure one entry per user per movie per list
    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", "list_type", name="unique_user_movie_list"),
        CheckConstraint(
            "list_type IN (" + ", ".join(f"'{t}'" for t in LIST_TYPES) + ")",
            name="chk_saved_list_type",
        ),
    )

    def __repr__(self):
        return f"<SavedMovie(user_id={self.user_id}, movie_id={self.movie_id}, list_type={self.list_type})>"


class CustomList(Base):
    """
    Custom Lists model - Users can create custom movie lists (e.g., "Sci-Fi Collection")
    """
    __tablename__ = "custom_lists"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)  # Can other users see this list?
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("Profile", back_populates="custom_lists")
    entries = relationship(
        "CustomListMovie",
        back_populates="custom_list",
        cascade="all, delete-orphan",
        order_by="CustomListMovie.added_at",
    )

    def __repr__(self):
        return f"<CustomList(id={self.id}, name={self.name}, user_id={self.user_id})>"


class CustomListMovie(Base):
    """
    Custom List entries - Movies in a custom list
    """
    __tablename__ = "custom_list_movies"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    list_id = Column(String(36), ForeignKey("custom_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)
    added_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    custom_list = relationship("CustomList", back_populates="entries")
    movie = relationship("Movie")

    __table_args__ = (
        UniqueConstraint("list_id", "movie_id", name="unique_list_movie"),
    )

    def __repr__(self):
        return f"<CustomListMovie(list_id={self.list_id}, movie_id={self.movie_id})>"
