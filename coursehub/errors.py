"""
Error taxonomy shared by the REST routes, the services and the live channel.

Every error is an ``HTTPException`` so it can be raised from any layer and
FastAPI turns it into the matching status code. The live channel catches the
same classes and reports ``detail`` through an ``error`` event.
"""

from fastapi import HTTPException
from starlette import status


class CourseHubError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(CourseHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class AlreadyEnrolledError(ValidationError):
    default_detail = "Already enrolled in this course"


class AuthenticationError(CourseHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(CourseHubError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class NotFoundError(CourseHubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InfrastructureError(CourseHubError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
