"""
Multi-record views - listing and open house search results

A view collects the visitor's search params, makes one API call for a page
of records, and renders a template once per record. The X-Total-Count header
of that same call drives the pagination buttons.

Request defaults:
    count=true              always, so the proxy returns X-Total-Count
    limit=<DEFAULT_LIMIT>   when the visitor gave no page size

Usage:
    page = PageContext(query={"cities": "Houston", "offset": "20"})
    listings = page.view(ListingsView)
    html = listings.display_records("<div>[address] - [listPrice]</div>")
    button = listings.pagination_button({"type": "forward"}, "Next")
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Type

from markupsafe import escape

from vista.constants import PARAM_PREFIX, TOTAL_COUNT_HEADER
from vista.display.pagination import Direction, PageLink, build_link
from vista.display.single import ViewError
from vista.display.template import fields_to_spans, replace_placeholders
from vista.fields.base import FieldNormalizer
from vista.fields.listing import ListingNormalizer
from vista.fields.openhouse import OpenHouseNormalizer
from vista.services.param_collector import (
    LISTING_PARAMS,
    OPENHOUSE_PARAMS,
    ParamCollector,
    ParameterSet,
    listing_param_names,
)
from vista.services.rets_api_client import ApiResponse, CallDescriptor, CallType, RetsAPIError
from vista.utils.sanitize import prepare_field_value, to_int

if TYPE_CHECKING:
    from vista.display.context import PageContext

logger = logging.getLogger(__name__)

__all__ = [
    'MultiRecordView',
    'ListingsView',
    'OpenHousesView',
    'FilteredListingsView',
    'ListingsMapView',
    'NO_TYPE_MSG',
    'ONE_MAP_MSG',
]

NO_TYPE_MSG = "<p>You must set type=forward or type=back for this pagination button to work</p>"
ONE_MAP_MSG = "<p>Cannot display more than one map per page</p>"

_BUTTON_CLASSES = {
    Direction.FORWARD: 'listings-forward',
    Direction.BACKWARD: 'listings-backward',
}


class MultiRecordView:
    """
    Base for views that show a page of records.

    Subclasses set call_type, collector, normalizer_cls and no_results_msg.
    """

    call_type: CallType = CallType.PROPERTY_LISTINGS
    collector: ParamCollector = LISTING_PARAMS
    normalizer_cls: Type[FieldNormalizer] = FieldNormalizer
    no_results_msg = "No records matched your query"

    def __init__(self, context: "PageContext"):
        self.context = context
        self._records: Optional[List[FieldNormalizer]] = None
        self._response: Optional[ApiResponse] = None
        self._error: Optional[str] = None

    # =========================================================================
    # Loading
    # =========================================================================

    def collect_params(self) -> ParameterSet:
        return self.collector.collect(
            self.context.query, trim_tokens=self.context.config.TRIM_PARAM_TOKENS
        )

    def _load(self) -> Optional[str]:
        if self._records is not None or self._error is not None:
            return self._error

        params = self.collect_params()
        client = self.context.new_client(CallDescriptor(self.call_type))
        for name, value in params.items():
            client.add_param(name, value)
        client.add_param('count', 'true')
        if 'limit' not in params:
            client.add_param('limit', self.context.config.DEFAULT_LIMIT)

        try:
            self._response = client.fetch()
            self._records = self._build_records(self._response.body)
        except ViewError as e:
            self._error = e.message
        except RetsAPIError as e:
            self._error = str(e)

        if self._error is not None:
            self._records = None
            logger.warning(f"{type(self).__name__} unavailable: {self._error}")
        return self._error

    def _build_records(self, body: Any) -> List[FieldNormalizer]:
        if not isinstance(body, list) or not body:
            raise ViewError(self.no_results_msg)
        records = []
        for item in body:
            if not isinstance(item, Mapping):
                logger.debug(f"Skipping non-object record of type {type(item).__name__}")
                continue
            records.append(self.normalizer_cls(item, config=self.context.config))
        if not records:
            raise ViewError(self.no_results_msg)
        return records

    @property
    def error(self) -> Optional[str]:
        return self._load()

    def records(self) -> List[FieldNormalizer]:
        """Normalized records of this page; empty when the call failed."""
        if self._load() is not None:
            return []
        return list(self._records)

    def total_count(self) -> str:
        """X-Total-Count of the search, "0" when the header is absent."""
        error = self._load()
        if error is not None:
            return error
        return self._response.header(TOTAL_COUNT_HEADER, "0")

    # =========================================================================
    # Pagination
    # =========================================================================

    def _query_int(self, name: str, default: int) -> int:
        query = self.context.query
        for key in (name, f"{PARAM_PREFIX}{name}"):
            value = query.get(key)
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            if value is not None and value != "":
                return to_int(value, default=default)
        return default

    def page_link(self, direction: Any) -> Optional[PageLink]:
        """Link to the next/previous page, None for an unknown direction."""
        parsed = Direction.parse(direction)
        if parsed is None:
            return None
        self._load()
        total = 0 if self._response is None else to_int(self._response.header(TOTAL_COUNT_HEADER, "0"))
        default_limit = self.context.config.DEFAULT_LIMIT
        return build_link(
            parsed,
            self._query_int('offset', 0),
            self._query_int('limit', default_limit),
            total,
            self.context.query,
            base_url=self.context.page_url,
            default_limit=default_limit,
        )

    def pagination_button(self, atts: Any, content: str = "") -> str:
        """<button> that navigates to the next/previous page."""
        direction = Direction.parse(atts.get('type')) if isinstance(atts, Mapping) else None
        if direction is None:
            return NO_TYPE_MSG
        error = self._load()
        if error is not None:
            return error
        link = self.page_link(direction)
        disabled = 'disabled' if link.disabled else ''
        return (
            f"<button class='vista-listings-paginator {_BUTTON_CLASSES[direction]}' "
            f"onclick=\"window.location.href='{escape(link.url)}'\" {disabled}>{content}</button>"
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def display_records(self, template: str) -> str:
        """Template rendered once per record, or the view's error message."""
        error = self._load()
        if error is not None:
            return error
        return ''.join(replace_placeholders(template, record) for record in self._records)


class ListingsView(MultiRecordView):
    call_type = CallType.PROPERTY_LISTINGS
    collector = LISTING_PARAMS
    normalizer_cls = ListingNormalizer
    no_results_msg = "No listings matched your query"


class ListingsMapView(ListingsView):
    """
    The page's listings as map data plus an info panel template.

    The listing fields are embedded as JSON in a hidden span; the template's
    [field] tokens become empty spans that the map script fills with the
    selected listing. Only one map is rendered per page.
    """

    def __init__(self, context: "PageContext"):
        super().__init__(context)
        self.map_shown = False

    def listings_json(self) -> str:
        return json.dumps([record.get_fields() for record in self.records()])

    def display_map(self, atts: Any = None, content: str = "") -> str:
        if self.map_shown:
            return ONE_MAP_MSG
        error = self._load()
        if error is not None:
            return error

        self.map_shown = True
        return (
            f"<span id='vsta-listing-data' style='display: none;' "
            f"data-listings='{escape(self.listings_json())}'></span>"
            f"<div id='vsta-listing-map'></div>"
            f"<div id='vsta-listing-map-info'>{fields_to_spans(content)}</div>"
        )


class OpenHousesView(MultiRecordView):
    call_type = CallType.OPEN_HOUSES
    collector = OPENHOUSE_PARAMS
    normalizer_cls = OpenHouseNormalizer
    no_results_msg = "No open houses matched your query"


class FilteredListingsView(ListingsView):
    """
    Listings selected by template attributes instead of the visitor's query.

    Attribute values are split on the field-value separators (", ", "+",
    "%2C+", ","); listing_ids and mls_area values are sent as `q`.

    Example:
        view.listing_by_filter({"cities": "Houston, Dallas", "maxprice": "500000"},
                               "<p>[address]</p>")
    """

    QUERY_ATTRIBUTES = frozenset({'listing_ids', 'mls_area'})

    def __init__(self, context: "PageContext"):
        super().__init__(context)
        self.filters: Dict[str, List[str]] = {}

    def set_filters(self, atts: Mapping[str, Any]) -> None:
        """Filters from template attributes; ignored once the call was made."""
        if self._records is not None or self._error is not None:
            return
        filters = {}
        for external_name in listing_param_names():
            if external_name not in atts:
                continue
            values = prepare_field_value(atts[external_name])
            if values:
                filters[external_name] = values
        self.filters = filters

    def collect_params(self) -> ParameterSet:
        params = ParameterSet()
        for external_name, values in self.filters.items():
            api_name = self.collector.mappings[external_name]
            if api_name in self.QUERY_ATTRIBUTES:
                api_name = 'q'
            params.merge(api_name, values)
        return params

    def listing_by_filter(self, atts: Optional[Mapping[str, Any]], template: str) -> str:
        self.set_filters(atts or {})
        return self.display_records(template)
