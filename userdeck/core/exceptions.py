"""Service-level errors.

Services raise these directly; they are HTTPExceptions so FastAPI renders
them as ``{"detail": ...}`` with the matching status code.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, headers: dict[str, str] | None = None) -> None:
        super().__init__(status_code=self.code, detail=detail, headers=headers)


class BadRequestError(ServiceError):
    code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ServiceError):
    code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Invalid credentials") -> None:
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotFoundError(ServiceError):
    code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    code = status.HTTP_409_CONFLICT
