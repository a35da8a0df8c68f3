class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SlotValidationError(AppError):
    """Raised when a candidate slot or schedule key is incomplete or unknown."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class SlotConflictError(AppError):
    """Raised when a teacher is already booked for the same day and period."""
    def __init__(self, teacher: str, day: str, time: str, details: dict = None):
        message = f"{teacher} already has a lecture at {time} on {day}."
        payload = {"teacher": teacher, "day": day, "time": time}
        payload.update(details or {})
        super().__init__(message, status_code=409, details=payload)

class ScheduleRevisionError(AppError):
    """Raised when a compare-and-swap commit sees a newer schedule revision."""
    def __init__(self, key: str, expected: int | None, actual: int | None):
        super().__init__(
            f"Timetable {key} was modified concurrently; reload and retry",
            status_code=409,
            details={"key": key, "expected_revision": expected, "actual_revision": actual},
        )

class StoreUnavailableError(AppError):
    """Raised when the timetable store cannot be read or written."""
    def __init__(self, operation: str):
        super().__init__(
            f"Timetable store unavailable during {operation}; nothing was saved",
            status_code=503,
            details={"operation": operation},
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ScheduleNotFoundError(ResourceNotFoundError):
    """Raised when a target schedule cannot be read at all."""
    def __init__(self, key: str):
        super().__init__("Timetable", key)
