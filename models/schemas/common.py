from typing import Any


def is_blank(value: Any) -> bool:
    """True for None, non-strings and strings that are empty once trimmed."""
    return not isinstance(value, str) or not value.strip()


def normalize_identifier(value: str) -> str:
    """Usernames and emails are stored trimmed and lowercased."""
    return value.strip().lower()
