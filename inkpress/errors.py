from fastapi import status


class InkpressError(Exception):
    """Base error for request-scoped failures"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InkpressError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(InkpressError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(InkpressError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(InkpressError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(InkpressError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(InkpressError):
    """Store or external provider failure"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
