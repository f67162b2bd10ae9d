# Application Stats Package
from .metrics_calculator import MetricsCalculator, is_mastered, mastery_percent
from .service import StatsService

__all__ = ["MetricsCalculator", "StatsService", "is_mastered", "mastery_percent"]
