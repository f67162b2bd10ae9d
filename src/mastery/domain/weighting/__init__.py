# Domain Weighting Package
from .models import ProblemRecommendation, RecommendationTier, Recommendations

__all__ = ["RecommendationTier", "ProblemRecommendation", "Recommendations"]
