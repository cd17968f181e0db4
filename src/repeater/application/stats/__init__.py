# Application Stats Package
from .metrics_calculator import CardMetrics, MetricsCalculator
from .service import CollectionStats, CollectionStatsService, UpcomingCount, collection_stats

__all__ = [
    "CardMetrics",
    "CollectionStats",
    "CollectionStatsService",
    "MetricsCalculator",
    "UpcomingCount",
    "collection_stats",
]
