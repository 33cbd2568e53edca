"""
Input Sanitization Utilities
============================

Single source of truth for cleaning external input (query strings, template
attributes) before it reaches the API client or is echoed back into a page.

Unlike request validation, nothing here raises: page renders must degrade to
a default rather than fail on a malformed visitor URL.

Usage:
    from vista.utils.sanitize import sanitize_text, split_param_value, to_int

    offset = to_int(query.get("offset"), default=0)
    tokens = split_param_value(sanitize_text(query["cities"]))
"""

import re
from typing import Any, List, Optional, Union
from urllib.parse import urlparse

from markupsafe import Markup, escape

# Separators a visitor URL may use between repeated values:
# the percent-encoded ", " (%2C+), a literal ", ", or a bare "+"
PARAM_SPLIT_RE = re.compile(r"(?:%2C\+)|(?:, )|\+")

# Template attributes additionally accept plain commas with optional spacing
FIELD_VALUE_SPLIT_RE = re.compile(r"(?:%2C\+)|(?:, )|\+|,\s*")

# Characters allowed through when a query string is copied into a link
QUERY_STRING_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9 ,&=?%+]")

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

_URL_SCHEMES = ("http", "https")


def sanitize_text(value: Any) -> str:
    """
    Strip markup and collapse whitespace in a single text value.

    Args:
        value: Raw input (non-strings are converted with str())

    Returns:
        Plain text with tags removed, entities decoded and runs of
        whitespace (including newlines/tabs) collapsed to single spaces.
    """
    if value is None:
        return ""
    return Markup(str(value)).striptags()


def split_param_value(value: str, *, trim: bool = False) -> Union[str, List[str]]:
    """
    Split a query-string value on the recognised multi-value separators.

    Args:
        value: Sanitized query value (e.g., "Houston, Dallas" or "a+b")
        trim: Strip whitespace around each token

    Returns:
        The value itself when no separator is present, otherwise the list
        of tokens in order.

    Examples:
        >>> split_param_value("Houston")
        'Houston'
        >>> split_param_value("Houston, Dallas")
        ['Houston', 'Dallas']
    """
    tokens = PARAM_SPLIT_RE.split(value)
    if trim:
        tokens = [token.strip() for token in tokens]
    if len(tokens) == 1:
        return tokens[0]
    return tokens


def prepare_field_value(value: Any) -> List[str]:
    """
    Sanitize a template attribute and split it into its non-empty values.

    Examples:
        >>> prepare_field_value("98877034,98870614, 98886014")
        ['98877034', '98870614', '98886014']
        >>> prepare_field_value("")
        []
    """
    cleaned = sanitize_text(value)
    return [token for token in FIELD_VALUE_SPLIT_RE.split(cleaned) if token]


def to_int(value: Any, *, default: int = 0) -> int:
    """
    Lenient integer conversion for visitor-supplied pagination values.

    Leading digits are honoured ("20abc" -> 20), anything else non-numeric
    becomes 0. Only a missing value (None or "") uses the default.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return 0
    return int(match.group(1))


def filter_query_string(query_string: Optional[str]) -> str:
    """Drop every character outside [A-Za-z0-9 ,&=?%+] from a raw query string."""
    if not query_string:
        return ""
    return QUERY_STRING_DISALLOWED_RE.sub("", query_string)


def is_valid_url(value: Any) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not isinstance(value, str) or not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in _URL_SCHEMES and bool(parsed.netloc)


def esc_url(value: Any) -> str:
    """
    Make a URL safe to place inside an HTML attribute.

    Relative URLs pass through; absolute URLs with a scheme other than
    http(s) are rejected and return "".
    """
    if value is None:
        return ""
    url = str(value).strip().replace(" ", "%20")
    scheme = urlparse(url).scheme
    if scheme and scheme.lower() not in _URL_SCHEMES:
        return ""
    return str(escape(url))
