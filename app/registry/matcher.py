"""Match-any-identifier logic for searches.

A report matches a search when any identifier the search provides is exactly
equal to the report's value for the same field. Fields the search leaves empty
are wildcards. When several fields match, the first one in IDENTIFIER_FIELDS
order is recorded as matched_on.
"""

from app.database.models import ReportRecord
from app.registry.identifiers import IdentifierRecord


def resolve_matched_on(criteria: IdentifierRecord, report: ReportRecord) -> str | None:
    """Return the highest-priority field on which the report matches, or None."""
    for field, value in criteria.provided():
        if getattr(report, field) == value:
            return field
    return None


def match_reports(
    criteria: IdentifierRecord,
    reports: list[ReportRecord],
) -> list[tuple[ReportRecord, str]]:
    """Pair each matching report with its matched_on field.

    Reports that match on no field are dropped, so a candidate list fetched
    with a looser query is still filtered to exact matches.
    """
    matches: list[tuple[ReportRecord, str]] = []
    for report in reports:
        matched_on = resolve_matched_on(criteria, report)
        if matched_on is not None:
            matches.append((report, matched_on))
    return matches
