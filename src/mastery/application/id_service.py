"""Identifiers for review log entries."""

from ulid import ULID


def generate_review_id() -> str:
    """Generate a sortable review log ID using ULID."""
    return f"rev_{ULID()}"
