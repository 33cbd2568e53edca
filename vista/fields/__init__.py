"""Record normalizers: raw API records to flat display fields."""

from .base import FieldNormalizer, FieldTable, FormatResult
from .listing import ListingNormalizer
from .openhouse import OpenHouseNormalizer
from .analytics import AnalyticsNormalizer

__all__ = [
    'FieldNormalizer',
    'FieldTable',
    'FormatResult',
    'ListingNormalizer',
    'OpenHouseNormalizer',
    'AnalyticsNormalizer',
]
