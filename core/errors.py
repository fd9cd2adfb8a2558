# core/errors.py
from fastapi import HTTPException, status


# Error kinds surfaced in the `error` field of every failure detail
NOT_FOUND = "NOT_FOUND"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"
CONFLICT = "CONFLICT"
VALIDATION = "VALIDATION"
DUES_REQUIRED = "DUES_REQUIRED"
SERVER_ERROR = "SERVER_ERROR"


def _error(status_code: int, kind: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": kind, "message": message})


def not_found(message: str) -> HTTPException:
    return _error(status.HTTP_404_NOT_FOUND, NOT_FOUND, message)


def forbidden(message: str) -> HTTPException:
    return _error(status.HTTP_403_FORBIDDEN, FORBIDDEN, message)


def unauthorized(message: str) -> HTTPException:
    return _error(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED, message)


def conflict(message: str) -> HTTPException:
    """Record is no longer in the state the transition expects."""
    return _error(status.HTTP_409_CONFLICT, CONFLICT, message)


def validation_error(message: str) -> HTTPException:
    return _error(422, VALIDATION, message)


def bad_request(message: str) -> HTTPException:
    return _error(status.HTTP_400_BAD_REQUEST, VALIDATION, message)


def dues_required(message: str) -> HTTPException:
    return _error(status.HTTP_403_FORBIDDEN, DUES_REQUIRED, message)


def server_error(message: str) -> HTTPException:
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR, message)


def already_in_status(current_status: str) -> HTTPException:
    """409 for a transition attempted on a payment that already moved on."""
    readable = current_status.lower().replace("_", " ")
    return conflict(f"This payment has already been {readable}")
