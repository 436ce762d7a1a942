"""Identifying fields shared by reports and searches."""

from dataclasses import dataclass

# Priority order used to pick the single matched_on field of a search result.
IDENTIFIER_FIELDS: tuple[str, ...] = (
    "name",
    "instagram_id",
    "facebook_id",
    "email",
    "phone_number",
)


@dataclass(frozen=True)
class IdentifierRecord:
    """Optional identifying fields of a person. Empty strings count as absent."""

    name: str | None = None
    instagram_id: str | None = None
    facebook_id: str | None = None
    email: str | None = None
    phone_number: str | None = None

    def provided(self) -> list[tuple[str, str]]:
        """Return (field, value) pairs for non-empty fields, in priority order."""
        pairs: list[tuple[str, str]] = []
        for field in IDENTIFIER_FIELDS:
            value = getattr(self, field)
            if value:
                pairs.append((field, value))
        return pairs

    def is_empty(self) -> bool:
        return not self.provided()

    def as_params(self) -> tuple[str | None, ...]:
        """Field values in IDENTIFIER_FIELDS order, for SQL parameters."""
        return tuple(getattr(self, field) or None for field in IDENTIFIER_FIELDS)
