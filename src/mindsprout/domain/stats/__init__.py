# Domain Stats Package
from .models import DeckOverview, LeechEntry, MaturityBuckets, StatsReport, WorkloadDay

__all__ = ["MaturityBuckets", "LeechEntry", "WorkloadDay", "StatsReport", "DeckOverview"]
