"""
Vista Listings - real-estate listing display engine

Fetches listing, open house and analytics data from the Vista RETS proxy API
and exposes every record as flat, case-insensitive, display-ready fields for
text templates.
"""

__version__ = "1.0.0"

from .display.context import PageContext

__all__ = [
    "PageContext",
]
