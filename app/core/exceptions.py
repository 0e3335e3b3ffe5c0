"""
Error taxonomy. Each class pins the HTTP status it maps to; handlers in
main.py turn any of them into the {"success": false, "error": ...} envelope.
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, headers: dict | None = None):
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentials(AppError):
    # login failures are reported as plain bad requests
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Invalid or expired token."):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnexpectedError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
