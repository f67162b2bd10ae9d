"""
Service Factory
Centralizes the logic for selecting storage and content adapters.
"""

import logging

from mastery.application.config import AppConfig
from mastery.application.service import SchedulingService
from mastery.domain.cards.ports import CardRepository, Clock, ReviewLogRepository
from mastery.domain.content.ports import ContentSource
from mastery.infrastructure.adapters.clock import SystemClock
from mastery.infrastructure.adapters.content import YamlContentSource
from mastery.infrastructure.adapters.json_store import JsonCardRepository
from mastery.infrastructure.adapters.memory_store import (
    InMemoryCardRepository,
    InMemoryReviewLogRepository,
)

logger = logging.getLogger(__name__)


def get_repositories(config: AppConfig) -> tuple[CardRepository, ReviewLogRepository]:
    """
    Returns the card and review-log repositories for the configured backend.
    """
    if config.backend == "json":
        store = JsonCardRepository(config.store_path)
        logger.debug(f"Backend: json ({config.store_path})")
        return store, store

    logger.debug("Backend: memory")
    return InMemoryCardRepository(), InMemoryReviewLogRepository()


def get_content_source(config: AppConfig) -> ContentSource | None:
    if config.content_file is None:
        return None
    return YamlContentSource(config.content_file, config.error_catalog())


def build_service(config: AppConfig, clock: Clock | None = None) -> SchedulingService:
    cards, logs = get_repositories(config)
    return SchedulingService(
        cards=cards,
        clock=clock or SystemClock(),
        config=config,
        content=get_content_source(config),
        review_logs=logs,
    )
