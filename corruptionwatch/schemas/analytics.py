"""
Derived Analytics Schemas

Everything in this module is computed from the current report collection
on every request. None of it is persisted and none of it is cached.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Severity tier derived from a report count."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DefaulterProfile(BaseModel):
    """
    One person with at least `min_reports` reports filed against them.

    `designation` and `area_region` are the representative values chosen
    by the grouping procedure; they are not re-derived here.
    """
    corrupt_person_name: str
    designation: str = ""
    area_region: str = ""
    report_count: int = Field(..., ge=0)
    latest_report_date: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    status: Severity


class RegionStat(BaseModel):
    """Per-region report density for the heat map."""
    region: str
    count: int = Field(..., ge=0)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    severity: Severity
    categories: list[str] = Field(default_factory=list)

    @property
    def mappable(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class CategoryStat(BaseModel):
    """Category distribution slice."""
    key: str
    name: str
    value: int = Field(..., ge=0)
    color: str


class ItemOutcome(BaseModel):
    """Result of a bulk mutation for a single report id."""
    id: str
    ok: bool
    error: Optional[str] = None


class BulkOperationResult(BaseModel):
    """
    Outcome of one bulk mutation call.

    `errors` may hold fewer entries than `failed` when the store rejects a
    batch as a whole with a single message. `outcomes` always has one entry
    per distinct id that was submitted to the store.
    """
    success: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)
    outcomes: list[ItemOutcome] = Field(default_factory=list)


class RegionCount(BaseModel):
    region: str
    count: int


class CategoryCount(BaseModel):
    category: str
    count: int


class StatisticsSummary(BaseModel):
    """
    Headline numbers for the public dashboard.

    Advisory only: any count that could not be fetched is reported as zero
    and explained in `warnings`.
    """
    total_reports: int = 0
    resolved_reports: int = 0
    pending_reports: int = 0
    verified_reports: int = 0
    region_stats: list[RegionCount] = Field(default_factory=list)
    category_stats: list[CategoryCount] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AdminStats(BaseModel):
    """Moderation dashboard counters."""
    total_users: int = 0
    total_reports: int = 0
    anonymous_reports: int = 0
    verified_reports: int = 0
    pending_reports: int = 0
    resolved_reports: int = 0
    disputed_reports: int = 0
    reports_this_month: int = 0
    users_this_month: int = 0


class ReporterSummary(BaseModel):
    """
    One signed-in citizen, as seen through the reports they filed.

    Anonymous reports never contribute.
    """
    email: str
    reporter_name: str = ""
    report_count: int = Field(..., ge=1)
    first_report_at: datetime
    latest_report_at: datetime


class ReporterRoster(BaseModel):
    """A page of reporters. `total` counts every match before paging."""
    reporters: list[ReporterSummary] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int = 0


class HeatMapView(BaseModel):
    """Heat map payload. `error` is set when the underlying fetch failed."""
    regions: list[RegionStat] = Field(default_factory=list)
    categories: list[CategoryStat] = Field(default_factory=list)
    error: Optional[str] = None
    sequence: int = 0


class DirectoryView(BaseModel):
    """Defaulter directory payload, with the filters that produced it."""
    min_reports: int
    search: Optional[str] = None
    category: Optional[str] = None
    defaulters: list[DefaulterProfile] = Field(default_factory=list)
    error: Optional[str] = None
    sequence: int = 0
