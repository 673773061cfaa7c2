from datetime import datetime


def isoformat_or_empty(value: datetime | None) -> str:
    """Timestamp columns rendered for response schemas; NULL becomes ""."""
    return value.isoformat() if value else ""
