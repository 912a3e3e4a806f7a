"""
Error taxonomy for the auth service.

Every AuthServiceError maps to one HTTP status and is rendered as
{"error": message} (plus "details" when present) by the handlers in main.py.
"""
from typing import Optional

from fastapi import status


class AuthServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AuthServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class Conflict(AuthServiceError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already exists"


class InvalidCredentials(AuthServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class Unauthorized(AuthServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class NotFound(AuthServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found or could not be deleted"


class InternalError(AuthServiceError):
    pass


# Token verification failures. These never reach the client directly;
# the bearer dependency turns them into Unauthorized.

class CredentialError(Exception):
    pass


class ExpiredCredential(CredentialError):
    def __init__(self, message: str = "Token has expired."):
        super().__init__(message)


class InvalidCredential(CredentialError):
    def __init__(self, message: str = "Invalid token."):
        super().__init__(message)
