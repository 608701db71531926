# Application Stats Package
from .metrics_calculator import MetricsCalculator, compute_stats
from .service import StatsService

__all__ = ["MetricsCalculator", "StatsService", "compute_stats"]
