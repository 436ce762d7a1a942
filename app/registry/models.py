from dataclasses import dataclass, field

from app.database.models import ReportRecord, SearchRecord, SearchResultRecord
from app.registry.identifiers import IdentifierRecord

PENDING = "PENDING"
APPROVED = "APPROVED"
DENIED = "DENIED"

ACCESS_STATUSES = frozenset({PENDING, APPROVED, DENIED})


@dataclass(frozen=True)
class ReportInput:
    """Validated content of a report create/update."""

    identifiers: IdentifierRecord
    rating: int
    description: str | None = None


@dataclass(frozen=True)
class SearchResultDetail:
    """A stored search result with the report it points at.

    ``report`` is None when the report was deleted after the search ran.
    """

    result: SearchResultRecord
    report: ReportRecord | None


@dataclass(frozen=True)
class SearchDetail:
    """A search assembled with its results and their reports."""

    search: SearchRecord
    results: list[SearchResultDetail] = field(default_factory=list)
