# Canonical schemas for the corruption report engine.
# Reports come from the store; everything in analytics is derived.

from .report import (
    CATEGORY_LABELS,
    Category,
    Report,
    ReportCreate,
    ReportStatus,
)
from .analytics import (
    AdminStats,
    BulkOperationResult,
    CategoryCount,
    CategoryStat,
    DefaulterProfile,
    DirectoryView,
    HeatMapView,
    ItemOutcome,
    RegionCount,
    RegionStat,
    ReporterRoster,
    ReporterSummary,
    Severity,
    StatisticsSummary,
)

__all__ = [
    # Report
    "CATEGORY_LABELS",
    "Category",
    "Report",
    "ReportCreate",
    "ReportStatus",
    # Analytics
    "AdminStats",
    "BulkOperationResult",
    "CategoryCount",
    "CategoryStat",
    "DefaulterProfile",
    "DirectoryView",
    "HeatMapView",
    "ItemOutcome",
    "RegionCount",
    "RegionStat",
    "ReporterRoster",
    "ReporterSummary",
    "Severity",
    "StatisticsSummary",
]
