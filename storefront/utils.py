import html
import re
import unicodedata
from typing import Optional

import bleach
from email_validator import EmailNotValidError, validate_email

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def sanitize_input(value: Optional[str]) -> str:
    """Plain text of a user-supplied search string.

    Tags and NUL bytes are removed and the result is trimmed. Punctuation such
    as "C--" or "a;b" is kept: queries are parameterized and pages autoescape.
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    # bleach escapes what it keeps ("&" -> "&amp;"), undo that for matching
    val = html.unescape(bleach.clean(val, tags=set(), strip=True))
    return val.strip()


def slugify(name: Optional[str]) -> str:
    """Lowercase, ASCII, hyphen-separated form of a name.

    "Men's T-Shirts & Tops" -> "mens-t-shirts-and-tops"
    """
    norm = unicodedata.normalize("NFKD", (name or "").strip())
    norm = "".join(ch for ch in norm if ord(ch) < 128 and unicodedata.category(ch) != "Mn")
    norm = norm.replace("&", " and ").replace("'", "")
    norm = re.sub(r"[^A-Za-z0-9]+", "-", norm).strip("-")
    return norm.lower()


def is_valid_id(value: Optional[str]) -> bool:
    return bool(value) and ID_PATTERN.match(value) is not None


def is_valid_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
