"""
Typed failures raised by the scheduling core.

Callers at the boundary (CLI, HTTP server) catch SchedulingError and decide
how to present it. Nothing else is raised on purpose by the core.
"""


class SchedulingError(Exception):
    """Base class for every failure the scheduler reports."""


class InvalidRating(SchedulingError, ValueError):
    """Rating outside the accepted 1-10 range (or not an integer)."""

    def __init__(self, rating: object):
        self.rating = rating
        super().__init__(f"Rating must be an integer between 1 and 10, got {rating!r}")


class NotFound(SchedulingError, LookupError):
    """Referenced card or problem does not exist."""

    def __init__(self, problem_id: str):
        self.problem_id = problem_id
        super().__init__(f"No card for problem {problem_id!r}")


class Conflict(SchedulingError):
    """A concurrent write was detected by the storage layer."""

    def __init__(self, problem_id: str, expected_version: int, actual_version: int | None):
        self.problem_id = problem_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Version conflict for {problem_id!r}: "
            f"expected stored version {expected_version}, found {actual_version}"
        )


class UnknownErrorType(SchedulingError, LookupError):
    """An unresolved error references a type missing from the catalog."""

    def __init__(self, error_type_id: int):
        self.error_type_id = error_type_id
        super().__init__(f"Unknown error type id {error_type_id}")
