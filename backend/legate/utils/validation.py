"""Input normalization for request bodies parsed by read_json_body."""

from typing import Any, Optional

from legate.entities.estate import CollaboratorRole

MAX_EMAIL_LENGTH = 254


def as_trimmed_string(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_email(value: Any) -> Optional[str]:
    """
    Trim and lower-case an email, or return None when it is obviously bad.

    Deliberately loose: one "@" that is neither first nor last, no
    whitespace, at most 254 characters.
    """
    if not isinstance(value, str):
        return None
    email = value.strip().lower()

    if not email or len(email) > MAX_EMAIL_LENGTH:
        return None
    if email.count("@") != 1 or email.startswith("@") or email.endswith("@"):
        return None
    if any(ch.isspace() for ch in email):
        return None
    return email


def parse_collaborator_role(value: Any) -> Optional[CollaboratorRole]:
    """EDITOR or VIEWER (exact, upper-case); anything else is None."""
    if not isinstance(value, str):
        return None
    try:
        return CollaboratorRole(value)
    except ValueError:
        return None
