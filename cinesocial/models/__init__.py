"""
Import all models to ensure they are registered with SQLAlchemy
"""
from cinesocial.models.user import Account, Profile
from cinesocial.models.movie import Movie
from cinesocial.models.review import Review, Comment, CommentVote
from cinesocial.models.follow import UserFollow
from cinesocial.models.watchlist import SavedMovie, CustomList, CustomListMovie

__all__ = [
    "Account",
    "Profile",
    "Movie",
    "Review",
    "Comment",
    "CommentVote",
    "UserFollow",
    "SavedMovie",
    "CustomList",
    "CustomListMovie",
]
