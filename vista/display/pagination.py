"""
Pagination Controller - next/previous page links from offset/limit state

Pages are addressed by `offset` and `limit` query parameters. The total
number of matching records comes from the X-Total-Count response header.

Rules:
    forward:  offset += limit; disabled once nothing remains; the final page
              asks only for the remaining records
    backward: offset -= limit (floored at 0); disabled on the first page;
              limit resets to the default page size, since every page before
              the last holds exactly that many records

Every other visitor parameter is carried over so filters survive paging.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Tuple
from urllib.parse import quote_plus

from vista.constants import PAGINATION_PARAMS, PARAM_PREFIX
from vista.utils.sanitize import sanitize_text

__all__ = [
    'Direction',
    'PageLink',
    'build_link',
    'passthrough_pairs',
]


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @classmethod
    def parse(cls, value: Any) -> Optional["Direction"]:
        """'forward', 'backward' or 'back' (case-insensitive); None otherwise."""
        if isinstance(value, Direction):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip().lower()
        if text == "forward":
            return cls.FORWARD
        if text in ("backward", "back"):
            return cls.BACKWARD
        return None


@dataclass(frozen=True)
class PageLink:
    url: str
    offset: int
    limit: int
    disabled: bool


_SKIPPED_PARAMS = frozenset(
    list(PAGINATION_PARAMS) + [f"{PARAM_PREFIX}{name}" for name in PAGINATION_PARAMS]
)


def passthrough_pairs(params: Mapping[str, Any]) -> Iterator[Tuple[str, str]]:
    """Sanitized (name, value) pairs of every param except offset/limit."""
    for name, value in params.items():
        clean_name = sanitize_text(name)
        if not clean_name or clean_name in _SKIPPED_PARAMS:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            yield clean_name, sanitize_text(item)


def build_link(
    direction: Direction,
    current_offset: int,
    current_limit: int,
    total_count: int,
    passthrough_params: Mapping[str, Any],
    *,
    base_url: str = "",
    default_limit: int = 20,
) -> PageLink:
    """
    Compute the target of a pagination link.

    Args:
        direction: FORWARD or BACKWARD
        current_offset: Offset of the page being shown
        current_limit: Page size of the page being shown
        total_count: Total matching records (X-Total-Count)
        passthrough_params: Visitor query params to carry over
        base_url: Page URL the link points at
        default_limit: Configured default page size

    Returns:
        PageLink with url, new offset/limit and disabled flag.

    Examples:
        total=45, limit=20, offset=20 -> forward offset=40, limit=5, enabled
        total=45, limit=20, offset=40 -> forward disabled
        offset=0                      -> backward disabled
    """
    direction = Direction(direction)

    if direction is Direction.FORWARD:
        offset = current_offset + current_limit
        remaining = total_count - offset
        disabled = remaining <= 0
        limit = remaining if remaining < current_limit else current_limit
    else:
        offset = max(0, current_offset - current_limit)
        disabled = current_offset == 0
        limit = default_limit

    query = f"offset={offset}&limit={limit}"
    for name, value in passthrough_pairs(passthrough_params):
        query += f"&{quote_plus(name, safe=',')}={quote_plus(value, safe=',')}"

    separator = '&' if '?' in base_url else '?'
    return PageLink(url=f"{base_url}{separator}{query}", offset=offset, limit=limit, disabled=disabled)
