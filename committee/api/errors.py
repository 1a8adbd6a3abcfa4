"""API error handling and response helpers."""

from typing import Any, Dict

from fastapi import HTTPException, status

from committee.services.localizer import t


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class RosterUnavailableError(AppError):
    """Member roster could not be fetched from the directory."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or t("errors.load_members"), "roster_unavailable", status.HTTP_502_BAD_GATEWAY
        )


class PaymentStatusUpdateError(AppError):
    """Directory rejected a manual payment status change."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or t("errors.update_payment_status"),
            "payment_status_update_failed",
            status.HTTP_502_BAD_GATEWAY,
        )


class MemberSaveError(AppError):
    """Directory rejected a member create or update."""

    def __init__(self, message: str):
        super().__init__(message, "member_save_failed", status.HTTP_502_BAD_GATEWAY)


class MemberNotFoundError(AppError):
    """Member id is unknown."""

    def __init__(self, member_id: str):
        super().__init__(
            t("errors.member_not_found", member_id=member_id),
            "member_not_found",
            status.HTTP_404_NOT_FOUND,
        )


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


def raise_app_error(error: AppError) -> None:
    """Raise an HTTPException from an AppError."""
    raise HTTPException(
        status_code=error.http_status,
        detail=error_response(error),
    ) from error
