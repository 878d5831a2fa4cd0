"""Domain models for GitHub first-response analysis.

These dataclasses intentionally model only the subset of API payload fields that
are required to attribute first responses and compute business-hour metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class ItemType(str, Enum):
    """Kind of tracked GitHub item."""

    ISSUE = "issue"
    PR = "pr"


class ResponseSource(str, Enum):
    """Stream a candidate response event was taken from."""

    COMMENT = "comment"
    REVIEW_COMMENT = "review_comment"
    REVIEW = "review"
    MERGE = "merge"


@dataclass(frozen=True, slots=True)
class Item:
    """Represents an issue or pull request returned by the search API."""

    repository: str
    number: int
    item_type: ItemType
    title: str
    created_at: datetime
    author: Optional[str]
    url: str
    state: str = "open"

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"


@dataclass(frozen=True, slots=True)
class PullRequestDetail:
    """Merge information only available from the single pull request endpoint."""

    number: int
    merged_at: Optional[datetime]
    merged_by: Optional[str]


@dataclass(frozen=True, slots=True)
class Activity:
    """Represents the minimal comment or review data used to find a first response."""

    author: str
    created_at: Optional[datetime]


@dataclass(frozen=True, slots=True)
class ResponseEvent:
    """A candidate response from any of the comment, review or merge streams."""

    timestamp: datetime
    author: str
    source: ResponseSource


@dataclass(frozen=True, slots=True)
class ResolvedResponse:
    """The first qualifying response chosen for an item."""

    responded_at: datetime
    responded_by: str


@dataclass(frozen=True, slots=True)
class NormalizedRecord:
    """Per-item analysis result consumed by aggregation and rendering."""

    repository: str
    number: int
    item_type: ItemType
    title: str
    created_at: datetime
    author: Optional[str]
    url: str
    response: Optional[ResolvedResponse]
    response_time_hours: Optional[float]
    responded_within_one_day: bool
    week_start: date

    @property
    def first_response_at(self) -> Optional[datetime]:
        return self.response.responded_at if self.response else None

    @property
    def responded_by(self) -> Optional[str]:
        return self.response.responded_by if self.response else None


@dataclass(slots=True)
class WeeklySummary:
    """Items created in one ISO week and how many were answered within a business day."""

    week_start: date
    total_items: int
    responded_within_one_day: int
    percentage: float


@dataclass(slots=True)
class OverallMetrics:
    """Run-wide counts, rates and response time statistics split by item type."""

    total_issues: int
    total_prs: int
    issues_responded: int
    prs_responded: int
    issues_within_one_day: int
    prs_within_one_day: int
    issue_response_rate: float
    pr_response_rate: float
    issue_one_day_percentage: float
    pr_one_day_percentage: float
    min_response_time_hours: Optional[float]
    max_response_time_hours: Optional[float]
    mean_response_time_hours: Optional[float]
    median_response_time_hours: Optional[float]


@dataclass(frozen=True, slots=True)
class QuotaStatus:
    """Remaining request quota for one GitHub API category."""

    category: str
    remaining: int
    limit: int
    reset_at: datetime
