"""
Canonical Report Schema

A Report is one citizen's account of one incident involving one person.
Reports are owned by the storage layer. Once fetched they are read-only:
moderation happens through explicit admin operations, never by editing
a fetched object.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Category(str, Enum):
    """
    Fixed set of corruption categories a report can be filed under.
    """
    BRIBERY = "bribery"
    NEPOTISM = "nepotism"
    EXTORTION = "extortion"
    EMBEZZLEMENT = "embezzlement"
    FRAUD = "fraud"
    ABUSE_OF_POWER = "abuse_of_power"
    KICKBACKS = "kickbacks"
    MISUSE_OF_FUNDS = "misuse_of_funds"
    OTHER = "other"


# Display names used by forms and filters. Analytics labels are derived
# mechanically from the key instead (see core.aggregation.category_label).
CATEGORY_LABELS = {
    Category.BRIBERY: "Bribery",
    Category.NEPOTISM: "Nepotism",
    Category.EXTORTION: "Extortion",
    Category.EMBEZZLEMENT: "Embezzlement",
    Category.FRAUD: "Fraud",
    Category.ABUSE_OF_POWER: "Abuse of Power",
    Category.KICKBACKS: "Kickbacks",
    Category.MISUSE_OF_FUNDS: "Misuse of Public Funds",
    Category.OTHER: "Other",
}


class ReportStatus(str, Enum):
    """Moderation state of a report."""
    PENDING = "pending"
    VERIFIED = "verified"
    DISPUTED = "disputed"
    RESOLVED = "resolved"


class Report(BaseModel):
    """
    A single corruption report as returned by the store.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Opaque store identifier")

    # Subject
    corrupt_person_name: str = Field(..., min_length=1)
    designation: str = ""
    address: Optional[str] = None
    area_region: Optional[str] = Field(
        default=None,
        description="Free-text region as entered by the reporter",
        examples=["Mumbai", "Delhi"],
    )
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Content
    description: str = ""
    category: Category = Category.OTHER
    approached_authorities: bool = False
    was_resolved: bool = False
    evidence_files: list[str] = Field(default_factory=list)
    is_anonymous: bool = False
    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None

    # Moderation
    status: ReportStatus = ReportStatus.PENDING
    dispute_count: int = Field(default=0, ge=0)
    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @field_validator("evidence_files", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return [] if v is None else v

    @model_validator(mode="after")
    def _anonymous_has_no_reporter(self) -> "Report":
        if self.is_anonymous and (self.reporter_name or self.reporter_email):
            raise ValueError("anonymous reports cannot carry reporter name or email")
        return self

    @property
    def coordinates(self) -> Optional[tuple[float, float]]:
        """(latitude, longitude) when the reporter supplied both."""
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude


class ReportCreate(BaseModel):
    """
    Data accepted when a citizen files a new report.

    Reporter identity is dropped by the store when `is_anonymous` is set.
    """
    corrupt_person_name: str = Field(..., min_length=1)
    designation: str = Field(..., min_length=1)
    address: Optional[str] = None
    area_region: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    description: str = Field(..., min_length=1)
    category: Category
    approached_authorities: bool = False
    was_resolved: bool = False
    is_anonymous: bool = False
    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None
    evidence_files: list[str] = Field(default_factory=list)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "corrupt_person_name": "R. Sharma",
                "designation": "Sub-Registrar",
                "area_region": "Pune",
                "description": "Demanded payment to register a sale deed.",
                "category": "bribery",
                "approached_authorities": False,
                "was_resolved": False,
                "is_anonymous": True,
            }
        },
    )
