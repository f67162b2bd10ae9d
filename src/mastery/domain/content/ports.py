"""
Ports (interfaces) for problem metadata owned by the content collaborator.
"""

from abc import ABC, abstractmethod

from .models import StudyPhase


class ContentSource(ABC):
    """
    Port for the phase and error metadata attached to problems.

    Implementations:
        - StaticContentSource: In-memory mappings.
        - YamlContentSource: Reads a YAML manifest of problems.
    """

    @abstractmethod
    async def get_phase_assignments(self) -> dict[str, StudyPhase]:
        """Map problem id -> the study phase the problem currently sits in."""
        pass

    @abstractmethod
    async def get_unresolved_errors(self) -> dict[str, dict[int, int]]:
        """Map problem id -> {error type id: unresolved occurrence count}."""
        pass
