"""
Domain models for content metadata the scheduler consumes but does not own:
study phases and the error-type catalog.
"""

from dataclasses import dataclass
from enum import IntEnum

from mastery.domain.constants import (
    DEFAULT_ERROR_TYPES,
    HIGH_IMPACT_MULTIPLIER,
    LOW_IMPACT_MULTIPLIER,
)
from mastery.domain.errors import UnknownErrorType


class StudyPhase(IntEnum):
    """Study phases in prerequisite order. Earlier phases block later ones."""

    DECODE = 1
    ENCODE = 2
    RECALL = 3
    REFLECT = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: "int | str | StudyPhase") -> "StudyPhase":
        """Accept a phase number, a name ("decode"), or a StudyPhase."""
        if isinstance(value, StudyPhase):
            return value
        if isinstance(value, str) and not value.strip().isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown study phase {value!r}") from None
        return cls(int(value))


@dataclass(frozen=True)
class ErrorType:
    """
    A kind of mistake that can be logged against a problem.

    Attributes:
        id: Stable identifier referenced by error logs.
        name: Display name.
        multiplier: Severity weight applied to a problem's priority.
        description: Optional free text.
    """

    id: int
    name: str
    multiplier: float
    description: str | None = None

    def is_high_impact(self) -> bool:
        return self.multiplier >= HIGH_IMPACT_MULTIPLIER

    def is_low_impact(self) -> bool:
        return self.multiplier <= LOW_IMPACT_MULTIPLIER


class ErrorCatalog:
    """Closed set of error types keyed by id."""

    def __init__(self, error_types: list[ErrorType]):
        self._types: dict[int, ErrorType] = {}
        for error_type in error_types:
            if error_type.id in self._types:
                raise ValueError(f"Duplicate error type id {error_type.id}")
            if error_type.multiplier <= 0:
                raise ValueError(
                    f"Error type {error_type.name!r} needs a positive multiplier"
                )
            self._types[error_type.id] = error_type

    @classmethod
    def default(cls) -> "ErrorCatalog":
        return cls([ErrorType(*row) for row in DEFAULT_ERROR_TYPES])

    def get(self, error_type_id: int) -> ErrorType:
        try:
            return self._types[error_type_id]
        except KeyError:
            raise UnknownErrorType(error_type_id) from None

    def all(self) -> list[ErrorType]:
        """Error types ordered by descending multiplier, then id."""
        return sorted(self._types.values(), key=lambda t: (-t.multiplier, t.id))

    def __contains__(self, error_type_id: object) -> bool:
        return error_type_id in self._types

    def __len__(self) -> int:
        return len(self._types)
