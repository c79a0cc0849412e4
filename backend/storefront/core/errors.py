"""Typed application errors and their HTTP status mapping."""

import enum

from fastapi import status


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    GATEWAY = "gateway"
    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.GATEWAY: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Base class for errors raised by the service layer."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class GatewayError(AppError):
    kind = ErrorKind.GATEWAY


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN


class InternalError(AppError):
    kind = ErrorKind.INTERNAL
