"""Domain layer for groomreports: the reporting and analytics engine."""

from groomreports.domain.normalization import normalize, NormalizationService
from groomreports.domain.filters import apply_report_defaults, resolve_filters
from groomreports.domain.analytics import compute_report_data, AnalyticsService
from groomreports.domain.drill import resolve_drill, DrillResult

__all__ = [
    "normalize",
    "NormalizationService",
    "apply_report_defaults",
    "resolve_filters",
    "compute_report_data",
    "AnalyticsService",
    "resolve_drill",
    "DrillResult",
]
