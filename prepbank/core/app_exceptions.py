"""Application exceptions carrying a stable error code."""

from typing import Any, NoReturn

from fastapi import HTTPException, status

ErrorDetails = dict[str, Any] | list[Any] | None


class AppError(HTTPException):
    """HTTP error rendered as ``{error_code, message, details, request_id}``."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: ErrorDetails = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code = code
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"AppError({self.status_code}, {self.code!r}, {self.message!r})"


def raise_app_error(
    status_code: int, code: str, message: str, details: ErrorDetails = None
) -> NoReturn:
    raise AppError(status_code=status_code, code=code, message=message, details=details)


def raise_not_found(code: str, entity: str, **ids: Any) -> NoReturn:
    """404 with the looked-up ids echoed as details, e.g. ``report_id=...``."""
    raise AppError(
        status.HTTP_404_NOT_FOUND,
        code,
        f"{entity} not found",
        {key: str(value) for key, value in ids.items()} or None,
    )
