from typing import Any, Dict, Optional
from fastapi import HTTPException, status

from academy_backend.errors import (
    AcademyError,
    AccessDenied,
    Conflict,
    EnrollmentRequired,
    Forbidden,
    InvalidOrder,
    InvalidRequest,
    NotFound,
)

class NotFoundException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, detail or "Not found", headers)

class ForbiddenException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_403_FORBIDDEN, detail or "Forbidden", headers)

class BadRequestException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail or "Bad request", headers)

class UnauthorizedException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail or "Unauthorized", headers)

class ConflictException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_409_CONFLICT, detail or "Conflict", headers)

class InternalServerException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail or "Internal server error", headers)

def domain_error_to_http_exception(error: AcademyError) -> HTTPException:
    detail = error.to_detail()

    if isinstance(error, NotFound):
        return NotFoundException(detail=detail)
    elif isinstance(error, (AccessDenied, Forbidden)):
        return ForbiddenException(detail=detail)
    elif isinstance(error, (InvalidOrder, InvalidRequest)):
        return BadRequestException(detail=detail)
    elif isinstance(error, Conflict):
        return ConflictException(detail=detail, headers={"Retry-After": "1"})
    elif isinstance(error, EnrollmentRequired):
        return ConflictException(detail=detail)
    else:
        return InternalServerException(detail=detail)
