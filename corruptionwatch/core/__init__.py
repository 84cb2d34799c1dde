# Report aggregation and analytics engine
from .severity import classify_severity, SEVERITY_THRESHOLDS
from .gazetteer import Coordinates, resolve_coordinates
from .palette import PALETTE, assign_colors
from .aggregation import aggregate_categories, aggregate_regions, category_label
from .errors import (
    EngineError,
    FetchFailure,
    AuthorizationFailure,
    MalformedRemoteRow,
)
from .authorization import Authorizer, StaticAuthorizer
from .defaulters import DefaulterAggregator, filter_defaulters
from .statistics import StatisticsAggregator
from .bulk import BulkOperation, BulkOperationCoordinator, Delete, SetStatus
from .sequencing import RefreshSequencer
from .analytics import AnalyticsService

__all__ = [
    "classify_severity",
    "SEVERITY_THRESHOLDS",
    "Coordinates",
    "resolve_coordinates",
    "PALETTE",
    "assign_colors",
    "aggregate_categories",
    "aggregate_regions",
    "category_label",
    "EngineError",
    "FetchFailure",
    "AuthorizationFailure",
    "MalformedRemoteRow",
    "Authorizer",
    "StaticAuthorizer",
    "DefaulterAggregator",
    "filter_defaulters",
    "StatisticsAggregator",
    "BulkOperation",
    "BulkOperationCoordinator",
    "Delete",
    "SetStatus",
    "RefreshSequencer",
    "AnalyticsService",
]
