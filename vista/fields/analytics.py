"""
Analytics Normalizer - market summary for a listing query

The analytics endpoint returns one summary object (averages, counts and an
area distribution) for every listing matching the query.
"""

from typing import Any

from markupsafe import escape

from vista.fields.base import FieldNormalizer, RatioField, handler_registry, to_number

NO_ANALYTICS_MSG = "No analytics matched your query"


def handle_area_distribution(analytics: FieldNormalizer, name: str, value: Any) -> None:
    """{"Downtown": 12, "Midtown": 4} -> two-column HTML table."""
    rows = ''.join(
        f"<tr><td>{escape(area)}</td><td>{escape(count)}</td></tr>"
        for area, count in (value or {}).items()
    )
    analytics.set_text(
        name,
        "<table class='vista-area-distribution'>"
        "<thead><tr><th>Area</th><th>Listings</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>",
    )


class AnalyticsNormalizer(FieldNormalizer):
    """Analytics summary. Every field reads NO_ANALYTICS_MSG when totalCount is 0."""

    handlers = handler_registry({
        'areaDistribution': handle_area_distribution,
    })

    number_fields = frozenset({'sqftPrice', 'avgPrice'})

    derived_fields = (
        RatioField('sqftPrice', 'avgPrice', 'avgLivingArea'),
    )

    def finalize(self) -> None:
        try:
            total = to_number(self.record.get('totalCount'))
        except (TypeError, ValueError):
            return
        if total == 0:
            for name in list(self.fields):
                self.fields.set(name, NO_ANALYTICS_MSG)
