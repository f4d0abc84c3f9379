class AppError(Exception):
    """Base class for all application exceptions."""
    code = "APP_ERROR"

    def __init__(self, message: str, status_code: int = 500, details: dict = None, code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if code is not None:
            self.code = code
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class AssignmentError(AppError):
    """Business-rule rejection of an assignment operation. Routine, never a fault."""
    code = "ASSIGNMENT_ERROR"

    def __init__(self, message: str, details: dict = None, status_code: int = 409):
        super().__init__(message, status_code=status_code, details=details)


class FacultyUnavailableError(AssignmentError):
    code = "UNAVAILABLE"

    def __init__(self, faculty_id: str):
        super().__init__(
            f"Faculty {faculty_id} is not available for new assignments",
            details={"faculty_id": faculty_id},
        )


class CapacityExceededError(AssignmentError):
    code = "CAPACITY_EXCEEDED"

    def __init__(self, faculty_id: str, current_load: int, max_capacity: int, message: str | None = None):
        super().__init__(
            message or f"Faculty {faculty_id} is at max capacity ({current_load}/{max_capacity})",
            details={"faculty_id": faculty_id, "current_load": current_load, "max_capacity": max_capacity},
        )


class NoOpError(AssignmentError):
    code = "NO_OP"


class VersionConflictError(AssignmentError):
    """The stored row version moved between read and write."""
    code = "VERSION_CONFLICT"

    def __init__(self, submission_id: str, expected_version: int, actual_version: int | None = None):
        super().__init__(
            f"Assignment for submission {submission_id} was modified concurrently",
            details={
                "submission_id": submission_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class NoCapacityAnywhereError(AssignmentError):
    code = "NO_CAPACITY_ANYWHERE"

    def __init__(self):
        super().__init__("No available faculty with capacity")


class AssignmentStateError(AssignmentError):
    code = "INVALID_STATE"


class AssignmentOwnershipError(AssignmentError):
    code = "NOT_ASSIGNED"

    def __init__(self, submission_id: str):
        super().__init__(
            f"Submission {submission_id} is not assigned to you",
            details={"submission_id": submission_id},
            status_code=403,
        )


class CapacityOutOfRangeError(AppError):
    code = "OUT_OF_RANGE"

    def __init__(self, value: int, minimum: int, maximum: int):
        super().__init__(
            f"max_capacity must be between {minimum} and {maximum}",
            status_code=422,
            details={"value": value, "minimum": minimum, "maximum": maximum},
        )
