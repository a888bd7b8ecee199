from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from cinesocial.database import Base, generate_uuid, utcnow


class Account(Base):
    """Authentication identity; one profile per account"""
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="account", uselist=False, cascade="all, delete-orphan")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    account = relationship("Account", back_populates="profile")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")
    saved_movies = relationship("SavedMovie", back_populates="user", cascade="all, delete-orphan")
    custom_lists = relationship("CustomList", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Profile(id={self.id}, username={self.username})>"
