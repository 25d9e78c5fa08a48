from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class APIException(HTTPException):
    status_code_default = 500

    def __init__(self, detail: str, status_code: int = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=detail)


class ValidationError(APIException):
    """Malformed input, e.g. an empty or inverted time range."""
    status_code_default = 400


class Unauthenticated(APIException):
    status_code_default = 401

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class Forbidden(APIException):
    status_code_default = 403

    def __init__(self, detail: str = "Not allowed for this role"):
        super().__init__(detail)


class NotFound(APIException):
    status_code_default = 404


class SlotConflict(APIException):
    """The requested slot overlaps a non-cancelled appointment of the same doctor."""
    status_code_default = 409

    def __init__(self, detail: str = "Time slot is already booked"):
        super().__init__(detail)


class InvalidTransition(APIException):
    status_code_default = 409


class PersistenceError(APIException):
    """A storage call failed. Not retried."""
    status_code_default = 503

    def __init__(self, detail: str = "Storage operation failed"):
        super().__init__(detail)


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
