from sqlalchemy import Column, String, Text, DateTime
from cinesocial.database import Base, generate_uuid, utcnow


class Movie(Base):
    """Movie metadata imported from OMDb, shared by every user"""
    __tablename__ = "movies"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    imdb_id = Column(String(20), unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    year = Column(String(20), nullable=False)
    rated = Column(String(20))
    released = Column(String(50))
    runtime = Column(String(50))
    genre = Column(String)
    director = Column(String)
    writer = Column(String)
    actors = Column(String)
    plot = Column(Text)
    language = Column(String)
    country = Column(String)
    awards = Column(String)
    poster_url = Column(String(500))
    metascore = Column(String(10))
    imdb_rating = Column(String(10))
    imdb_votes = Column(String(20))
    type = Column(String(20))
    box_office = Column(String(50))
    production = Column(String)
    website = Column(String(500))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Movie(imdb_id={self.imdb_id}, title={self.title})>"
