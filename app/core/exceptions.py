from fastapi import HTTPException, status


class AppException:
    """Class-based exception handlers for common HTTP status codes."""

    @staticmethod
    def raise_400(message: str = "Bad Request"):
        """Raise a 400 Bad Request exception."""
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    @staticmethod
    def raise_401(message: str = "Unauthorized"):
        """Raise a 401 Unauthorized exception."""
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)

    @staticmethod
    def raise_403(message: str = "Forbidden"):
        """Raise a 403 Forbidden exception."""
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)

    @staticmethod
    def raise_404(message: str = "Not Found"):
        """Raise a 404 Not Found exception."""
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)

    @staticmethod
    def raise_409(message: str = "Conflict"):
        """Raise a 409 Conflict exception."""
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)

    @staticmethod
    def raise_500(message: str = "Internal Server Error"):
        """Raise a 500 Internal Server Error exception."""
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


# Create an instance for convenience
app_exception = AppException()

raise_400 = AppException.raise_400
raise_401 = AppException.raise_401
raise_403 = AppException.raise_403
raise_404 = AppException.raise_404
raise_409 = AppException.raise_409
raise_500 = AppException.raise_500


# -------------------------------------------------
# Domain errors raised by the storage layer.
# Route handlers never catch these; app.main maps them to HTTP responses.
# -------------------------------------------------


class RentalError(Exception):
    """Base class for reservation/fleet precondition failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RentalError):
    """Invalid input: missing ids, malformed dates, missing end date."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(RentalError):
    """Unknown reservation, vehicle, customer or notification."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(RentalError):
    """Overlapping interval or a vehicle that cannot take the booking."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"

    def __init__(self, message: str | None = None, conflicts: list | None = None) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts or [])
