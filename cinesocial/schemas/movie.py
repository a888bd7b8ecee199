from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional

MISSING_VALUE = "N/A"


class OMDBMovieData(BaseModel):
    """
    Movie payload as returned by the OMDb API.
    Accepts OMDb's own field names (imdbID, Title, ...) or the snake_case ones.
    """
    imdb_id: str = Field(..., alias="imdbID", min_length=1)
    title: str = Field(..., alias="Title", min_length=1)
    year: str = Field(..., alias="Year")
    poster: Optional[str] = Field(None, alias="Poster")
    plot: Optional[str] = Field(None, alias="Plot")
    genre: Optional[str] = Field(None, alias="Genre")
    director: Optional[str] = Field(None, alias="Director")
    actors: Optional[str] = Field(None, alias="Actors")
    imdb_rating: Optional[str] = Field(None, alias="imdbRating")
    rated: Optional[str] = Field(None, alias="Rated")
    released: Optional[str] = Field(None, alias="Released")
    runtime: Optional[str] = Field(None, alias="Runtime")
    writer: Optional[str] = Field(None, alias="Writer")
    language: Optional[str] = Field(None, alias="Language")
    country: Optional[str] = Field(None, alias="Country")
    awards: Optional[str] = Field(None, alias="Awards")
    metascore: Optional[str] = Field(None, alias="Metascore")
    imdb_votes: Optional[str] = Field(None, alias="imdbVotes")
    type: Optional[str] = Field(None, alias="Type")
    box_office: Optional[str] = Field(None, alias="BoxOffice")
    production: Optional[str] = Field(None, alias="Production")
    website: Optional[str] = Field(None, alias="Website")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator(
        'poster', 'plot', 'genre', 'director', 'actors', 'imdb_rating', 'rated', 'released',
        'runtime', 'writer', 'language', 'country', 'awards', 'metascore', 'imdb_votes',
        'type', 'box_office', 'production', 'website',
    )
    @classmethod
    def drop_missing(cls, v):
        """OMDb reports unknown values as 'N/A'"""
        if v == MISSING_VALUE:
            return None
        return v


class MovieSummary(BaseModel):
    """Minimal movie projection embedded in reviews"""
    id: str
    title: str
    poster_url: Optional[str] = None
    year: str

    model_config = ConfigDict(from_attributes=True)


class MovieResponse(MovieSummary):
    imdb_id: str
    rated: Optional[str] = None
    released: Optional[str] = None
    runtime: Optional[str] = None
    genre: Optional[str] = None
    director: Optional[str] = None
    writer: Optional[str] = None
    actors: Optional[str] = None
    plot: Optional[str] = None
    language: Optional[str] = None
    country: Optional[str] = None
    awards: Optional[str] = None
    metascore: Optional[str] = None
    imdb_rating: Optional[str] = None
    imdb_votes: Optional[str] = None
    type: Optional[str] = None
    box_office: Optional[str] = None
    production: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
