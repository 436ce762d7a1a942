from dataclasses import dataclass
from datetime import datetime


@dataclass
class ReportRecord:
    """Represents a row from the reports table."""

    id: str
    user_id: str
    rating: int
    name: str | None = None
    instagram_id: str | None = None
    facebook_id: str | None = None
    email: str | None = None
    phone_number: str | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class AccessRequestRecord:
    """Represents a row from the report_access_requests table."""

    id: str
    report_id: str
    report_owner_id: str
    requester_id: str
    message: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class SearchRecord:
    """Represents a row from the searches table."""

    id: str
    user_id: str
    name: str | None = None
    instagram_id: str | None = None
    facebook_id: str | None = None
    email: str | None = None
    phone_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class SearchResultRecord:
    """Represents a row from the search_results table."""

    id: str
    search_id: str
    report_id: str
    matched_on: str
    created_at: datetime | None = None
