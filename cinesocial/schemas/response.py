"""
Response envelope returned by every data-access call.

Exactly one side is meaningful: a successful call has ``error is None``
(and, for single-row calls, non-null ``data``); a failed call has
``data is None`` and an ``error`` describing the failure.
"""

from pydantic import BaseModel, ConfigDict
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorInfo(BaseModel):
    """Backend failure, independent of the database driver that raised it"""
    message: str
    code: Optional[str] = None
    details: Optional[str] = None
    hint: Optional[str] = None


class DbResponse(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return self.error is None


class DbErrorResponse(BaseModel):
    """Envelope for delete-only calls"""
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

