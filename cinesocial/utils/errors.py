"""
Error helpers for the data-access layer.

Services translate database exceptions into ErrorInfo and return them in
the envelope. Call sites that prefer exceptions use unwrap_response() /
check_response(), which raise DatabaseError.

Codes follow PostgreSQL SQLSTATE where one exists, plus PGRST116 for a
single-row read that matched nothing.
"""
from typing import Optional, TypeVar, Union
import logging

from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session

from cinesocial.schemas.response import DbResponse, DbErrorResponse, ErrorInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
INSUFFICIENT_PRIVILEGE = "42501"
NOT_FOUND = "PGRST116"

# SQLite does not expose SQLSTATE; classify by its integrity messages instead
_SQLITE_MESSAGES = (
    ("UNIQUE constraint failed", UNIQUE_VIOLATION),
    ("FOREIGN KEY constraint failed", FOREIGN_KEY_VIOLATION),
    ("NOT NULL constraint failed", NOT_NULL_VIOLATION),
    ("CHECK constraint failed", CHECK_VIOLATION),
)


class DatabaseError(Exception):
    """Raised by unwrap_response() for an error-bearing envelope"""

    def __init__(self, message: str, original_error: Optional[ErrorInfo] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.code = code

    @classmethod
    def from_error(cls, error: ErrorInfo) -> "DatabaseError":
        return cls(error.message, error, error.code)


class MissingDataError(DatabaseError):
    """The backend reported success but returned no row"""


class PolicyViolation(Exception):
    """A write was refused by a row-level policy"""

    def __init__(self, table: str):
        super().__init__(f'new row violates row-level security policy for table "{table}"')
        self.table = table


def unwrap_response(response: DbResponse[T]) -> T:
    """
    Unwraps a database response and raises if there's an error

    Raises:
        DatabaseError: the envelope carries an error
        MissingDataError: no error, but no data either
    """
    if response.error:
        raise DatabaseError.from_error(response.error)

    if response.data is None:
        raise MissingDataError("No data returned from database")

    return response.data


def check_response(response: Union[DbResponse, DbErrorResponse]) -> None:
    """Raise DatabaseError if a delete-only (or any) envelope carries an error"""
    if response.error:
        raise DatabaseError.from_error(response.error)


def is_unique_constraint_error(error: Optional[ErrorInfo]) -> bool:
    return error is not None and error.code == UNIQUE_VIOLATION


def is_not_found_error(error: Optional[ErrorInfo]) -> bool:
    return error is not None and error.code == NOT_FOUND


def is_foreign_key_error(error: Optional[ErrorInfo]) -> bool:
    return error is not None and error.code == FOREIGN_KEY_VIOLATION


def is_policy_error(error: Optional[ErrorInfo]) -> bool:
    return error is not None and error.code == INSUFFICIENT_PRIVILEGE


def not_found_error(entity: str) -> ErrorInfo:
    return ErrorInfo(
        message=f"{entity} not found",
        code=NOT_FOUND,
        details="The result contains 0 rows",
    )


def error_from_exception(exc: Exception) -> ErrorInfo:
    """Translate a database (or policy) exception into ErrorInfo"""
    if isinstance(exc, PolicyViolation):
        return ErrorInfo(message=str(exc), code=INSUFFICIENT_PRIVILEGE)

    orig = getattr(exc, "orig", None) or exc
    message = str(orig).strip()

    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not code and isinstance(exc, IntegrityError):
        for fragment, sqlstate in _SQLITE_MESSAGES:
            if fragment in message:
                code = sqlstate
                break

    diag = getattr(orig, "diag", None)
    return ErrorInfo(
        message=message,
        code=code,
        details=getattr(diag, "message_detail", None),
        hint=getattr(diag, "message_hint", None),
    )


def failed(db: Session, exc: Union[SQLAlchemyError, PolicyViolation]) -> DbResponse:
    """Roll back the session and return the failure as an envelope"""
    db.rollback()
    error = error_from_exception(exc)
    if isinstance(exc, PolicyViolation):
        logger.warning(f"Policy refused write: {error.message}")
    else:
        logger.warning(f"Database error ({error.code}): {error.message}")
    return DbResponse(data=None, error=error)
