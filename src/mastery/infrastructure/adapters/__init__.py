# Infrastructure Adapters Package
from .clock import FixedClock, SystemClock
from .content import StaticContentSource, YamlContentSource
from .json_store import JsonCardRepository
from .memory_store import InMemoryCardRepository, InMemoryReviewLogRepository

__all__ = [
    "SystemClock",
    "FixedClock",
    "StaticContentSource",
    "YamlContentSource",
    "JsonCardRepository",
    "InMemoryCardRepository",
    "InMemoryReviewLogRepository",
]
