from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ApiError(AppError):
    """REST call failed or returned a non-success status."""

    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(detail)


class TransportError(AppError):
    """Socket failed to open or dropped mid-session."""


class InvalidTransitionError(AppError):
    pass
