"""
String helpers shared by the engine, the generator and the relationship
manager.
"""

import re
import unicodedata
from typing import Iterable, List

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value))


def is_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_iso_date(value: str) -> bool:
    """Check if a string looks like an ISO date or timestamp."""
    return bool(ISO_DATE_PATTERN.match(value) or ISO_DATETIME_PATTERN.match(value))


def digit_count(value: int) -> int:
    """Number of decimal digits of an integer, ignoring the sign."""
    return len(str(abs(int(value))))


def ascii_slug(text: str, separator: str = ".") -> str:
    """Lowercase ASCII slug of ``text`` suitable for an email local part.

    Example:
        >>> ascii_slug("Hélène Benali")
        'helene.benali'
    """
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    words = re.findall(r"[a-z0-9]+", ascii_text)
    return separator.join(words)


def column_tokens(column_name: str) -> List[str]:
    """Split a snake_case or camelCase column name into lowercase tokens.

    Example:
        >>> column_tokens("hotelName_fr")
        ['hotel', 'name', 'fr']
    """
    spaced = CAMEL_BOUNDARY.sub("_", column_name)
    return [token for token in re.split(r"[^a-z0-9]+", spaced.lower()) if token]


def column_matches(column_name: str, fragments: Iterable[str]) -> bool:
    """Check if a column name contains one of ``fragments`` as a word.

    Short fragments (three letters or less) must be a whole token, so
    ``tel`` matches ``tel_fixe`` but not ``hotel``. Longer fragments may
    also start or end a token, as in ``username`` or ``phonenumber``.
    """
    tokens = column_tokens(column_name)
    for fragment in fragments:
        for token in tokens:
            if token == fragment:
                return True
            if len(fragment) > 3 and (token.startswith(fragment) or token.endswith(fragment)):
                return True
    return False
