import uuid


def is_valid_id(value: object) -> bool:
    """Return True if value is a string the UUID primary key columns accept."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
