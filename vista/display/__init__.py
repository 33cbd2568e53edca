"""Views, pagination and template rendering."""

from vista.display.context import PageContext
from vista.display.multiple import (
    FilteredListingsView,
    ListingsMapView,
    ListingsView,
    MultiRecordView,
    OpenHousesView,
)
from vista.display.single import AnalyticsView, OpenHouseView, SingleListingView, SingleRecordView, ViewError

__all__ = [
    'PageContext',
    'SingleRecordView',
    'SingleListingView',
    'OpenHouseView',
    'AnalyticsView',
    'MultiRecordView',
    'ListingsView',
    'OpenHousesView',
    'FilteredListingsView',
    'ListingsMapView',
    'ViewError',
]
