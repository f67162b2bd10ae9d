"""
Content adapters: phase assignments and unresolved errors per problem.

YAML manifest format:

    problems:
      - id: two-sum
        phase: decode            # phase name or number (1-4)
        unresolved_errors:       # error type id -> unresolved count
          1: 2
          5: 1
      - id: lru-cache
        phase: 3
        unresolved_errors: [1, 1, 7]   # or a list of error type ids, one per occurrence
"""

import logging
from collections import Counter
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from mastery.domain.content.models import ErrorCatalog, StudyPhase
from mastery.domain.content.ports import ContentSource

logger = logging.getLogger(__name__)


class StaticContentSource(ContentSource):
    """Content metadata held in memory."""

    def __init__(
        self,
        phases: Mapping[str, StudyPhase] | None = None,
        errors: Mapping[str, Mapping[int, int]] | None = None,
    ):
        self._phases = dict(phases or {})
        self._errors = {pid: dict(counts) for pid, counts in (errors or {}).items()}

    async def get_phase_assignments(self) -> dict[str, StudyPhase]:
        return dict(self._phases)

    async def get_unresolved_errors(self) -> dict[str, dict[int, int]]:
        return {pid: dict(counts) for pid, counts in self._errors.items()}


def _parse_errors(raw: Any, problem_id: str) -> dict[int, int]:
    if raw is None:
        return {}
    if isinstance(raw, list):
        return dict(Counter(int(type_id) for type_id in raw))
    if isinstance(raw, dict):
        counts = {int(type_id): int(count) for type_id, count in raw.items()}
        if any(count < 0 for count in counts.values()):
            raise ValueError(f"Negative error count for problem {problem_id!r}")
        return counts
    raise ValueError(f"unresolved_errors for {problem_id!r} must be a mapping or a list")


def parse_manifest(
    data: Any,
    catalog: ErrorCatalog | None = None,
) -> tuple[dict[str, StudyPhase], dict[str, dict[int, int]]]:
    """
    Validate a loaded manifest and split it into phase and error mappings.

    Raises:
        ValueError: Malformed manifest, unknown phase, or (when a catalog is
            given) an error type id missing from it.
    """
    if data is None:
        return {}, {}
    if not isinstance(data, dict) or not isinstance(data.get("problems", []), list):
        raise ValueError("Content manifest must be a mapping with a 'problems' list")

    phases: dict[str, StudyPhase] = {}
    errors: dict[str, dict[int, int]] = {}

    for entry in data.get("problems", []):
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.warning(f"Skipping content entry without id: {entry!r}")
            continue

        problem_id = str(entry["id"])
        if entry.get("phase") is not None:
            phases[problem_id] = StudyPhase.parse(entry["phase"])

        counts = _parse_errors(entry.get("unresolved_errors"), problem_id)
        if catalog is not None:
            for type_id in counts:
                catalog.get(type_id)
        if counts:
            errors[problem_id] = counts

    return phases, errors


class YamlContentSource(ContentSource):
    """
    Reads the manifest from disk on every call so edits are picked up live.
    """

    def __init__(self, path: Path, catalog: ErrorCatalog | None = None):
        self.path = Path(path)
        self.catalog = catalog

    def _load(self) -> tuple[dict[str, StudyPhase], dict[str, dict[int, int]]]:
        if not self.path.exists():
            logger.warning(f"Content manifest {self.path} not found; no phases or errors")
            return {}, {}
        with self.path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return parse_manifest(data, self.catalog)

    async def get_phase_assignments(self) -> dict[str, StudyPhase]:
        return self._load()[0]

    async def get_unresolved_errors(self) -> dict[str, dict[int, int]]:
        return self._load()[1]
