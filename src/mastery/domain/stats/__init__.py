# Domain Stats Package
from .models import CardMetrics, PhaseQueue, StatsSummary

__all__ = ["StatsSummary", "CardMetrics", "PhaseQueue"]
