"""Error taxonomy for the closing / payout workflow.

Every error is an ``HTTPException`` so the app-wide handler in
``src/__init__.py`` renders it in the standard response envelope. Errors
that carry extra context for the caller (e.g. remaining share headroom)
put it on ``data``.
"""

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from decimal import Decimal
from typing import Any, Optional


UNIQUE_VIOLATION = "23505"


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "internal server error"

    def __init__(self, detail: Optional[str] = None, data: Optional[dict] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        self.data = data


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid payload"


class IneligibleError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Customer not eligible"


class InvalidMarketerError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Marketer not found or not active"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to access this resource"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class ShareExceededError(ConflictError):

    def __init__(self, smd_id: Any, remaining_share: Decimal):
        remaining = Decimal(remaining_share).normalize()
        super().__init__(
            detail=f"Share exceeds 100% for SMD {smd_id}. Remaining: {remaining:f}%",
            data={"smd_id": str(smd_id), "remaining_share": remaining}
        )
        self.remaining_share = remaining


class DuplicatePayoutError(ConflictError):
    default_detail = "Payout for this month already exists"


class InternalError(AppError):
    pass


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reported a unique-constraint violation.

    asyncpg/psycopg expose the SQLSTATE on the wrapped DBAPI error; SQLite
    only reports it in the message.
    """
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)
