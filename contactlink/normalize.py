import re
from typing import Any, Optional

_PHONE_PUNCTUATION = re.compile(r"[\s\-()+.]")
_NON_DIGITS = re.compile(r"\D")
_PHONE_PREFIX = re.compile(r"^[\d+0]")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def as_text(value: Any) -> Optional[str]:
    """Scalar form values as trimmed text; structured values and booleans give None."""
    if value is None or isinstance(value, (bool, dict, list, tuple, set)):
        return None
    text = str(value).strip()
    return text or None


def digits_only(value: Optional[str]) -> str:
    if not value:
        return ""
    return _NON_DIGITS.sub("", value)


def looks_like_phone(value: Any) -> bool:
    """
    True when a value reads as a bare phone number.

    After stripping whitespace, hyphens, parentheses, '+' and dots the rest
    must be 7-15 digits, and either the text starts with a digit/'+'/'0' or
    at least 10 digits remain.
    """
    text = as_text(value)
    if not text:
        return False
    cleaned = _PHONE_PUNCTUATION.sub("", text)
    if not cleaned.isdigit() or not cleaned.isascii():
        return False
    if not 7 <= len(cleaned) <= 15:
        return False
    return bool(_PHONE_PREFIX.match(text)) or len(cleaned) >= 10


def same_text(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive equality; blanks never match."""
    if is_blank(a) or is_blank(b):
        return False
    return a.strip().casefold() == b.strip().casefold()


def same_phone(a: Optional[str], b: Optional[str]) -> bool:
    da, db = digits_only(a), digits_only(b)
    return bool(da) and da == db


def email_local_part(email: str) -> str:
    return email.strip().split("@", 1)[0]
