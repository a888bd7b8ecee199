"""
Row-level access policies.

Every data-access call runs its queries through these helpers, which play
the part of the database's row-level security:

- owner policy (USING clause): updates and deletes only ever see rows the
  acting user owns, so writes against someone else's row match nothing
  (update -> not found, delete -> no-op)
- visibility policy: rows with is_public = false are readable by their
  owner only
- insert checks (WITH CHECK clause): raise PolicyViolation
"""
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from cinesocial.models.review import Review
from cinesocial.models.watchlist import CustomList
from cinesocial.utils.errors import PolicyViolation


def owned_by(query: Query, model, user_id: str, owner_column: str = "user_id") -> Query:
    """Restrict ``query`` to rows of ``model`` owned by ``user_id``"""
    return query.filter(getattr(model, owner_column) == user_id)


def visible_to(query: Query, model, viewer_id: Optional[str] = None) -> Query:
    """Public rows, plus the viewer's own private ones"""
    if viewer_id is None:
        return query.filter(model.is_public.is_(True))
    return query.filter(or_(model.is_public.is_(True), model.user_id == viewer_id))


def check_can_comment(db: Session, review_id: str, user_id: str) -> None:
    """Comments are allowed on public reviews and on the commenter's own"""
    visible = visible_to(db.query(Review.id), Review, user_id).filter(Review.id == review_id).first()
    if visible is None:
        # Missing reviews fall through to the foreign key check
        if db.query(Review.id).filter(Review.id == review_id).first() is not None:
            raise PolicyViolation("comments")


def check_list_owner(db: Session, list_id: str, user_id: str) -> None:
    """Only the list owner may add movies to it"""
    owner_id = db.query(CustomList.user_id).filter(CustomList.id == list_id).scalar()
    if owner_id is not None and owner_id != user_id:
        raise PolicyViolation("custom_list_movies")
