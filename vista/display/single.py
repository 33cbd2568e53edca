"""
Single-record views - one listing, open house or analytics summary per page

A view fetches and normalizes its record on first access and keeps the
outcome (record or error message) for the rest of the render. Failures are
never raised to the caller; every accessor returns the display-ready error
message instead.

Usage:
    from vista.display.context import PageContext
    from vista.display.single import SingleListingView

    page = PageContext(query={"listing": "1005192"})
    listing = page.view(SingleListingView)
    listing.get_field("listPrice")            # "300,000"
    listing.data_field({"field": "address"})  # "123 Main St, ..."
"""

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Type

from vista.fields.analytics import AnalyticsNormalizer
from vista.fields.base import FieldNormalizer
from vista.fields.listing import ListingNormalizer
from vista.fields.openhouse import OpenHouseNormalizer
from vista.services.param_collector import ANALYTICS_PARAMS
from vista.services.rets_api_client import CallDescriptor, CallType, RetsAPIClient, RetsAPIError
from vista.utils.sanitize import sanitize_text

if TYPE_CHECKING:
    from vista.display.context import PageContext

logger = logging.getLogger(__name__)

__all__ = [
    'ViewError',
    'SingleRecordView',
    'SingleListingView',
    'OpenHouseView',
    'AnalyticsView',
]


class ViewError(Exception):
    """Carries a display-ready message out of a view loader."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def query_value(query: Mapping[str, Any], name: str) -> str:
    """First value of a visitor query param, sanitized; "" when absent."""
    value = query.get(name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return sanitize_text(value)


class SingleRecordView:
    """
    Base for views that show one record.

    Subclasses implement load_record(); it either returns a FieldNormalizer
    or raises ViewError. API errors not turned into ViewError by the loader
    are shown as their own message.
    """

    normalizer_cls: Type[FieldNormalizer] = FieldNormalizer

    def __init__(self, context: "PageContext"):
        self.context = context
        self._record: Optional[FieldNormalizer] = None
        self._error: Optional[str] = None

    def load_record(self) -> FieldNormalizer:
        raise NotImplementedError

    def _load(self) -> Optional[str]:
        """Run the loader once. Returns the error message, or None on success."""
        if self._record is not None or self._error is not None:
            return self._error
        try:
            self._record = self.load_record()
        except ViewError as e:
            self._error = e.message
        except RetsAPIError as e:
            self._error = str(e)
        if self._error is not None:
            logger.warning(f"{type(self).__name__} unavailable: {self._error}")
        return self._error

    def _call(self, client: RetsAPIClient, error_message: Optional[str] = None) -> Any:
        """Fetch the body; API errors become ViewError(error_message) when given."""
        try:
            body = client.get_response()
        except RetsAPIError as e:
            if error_message is None:
                raise
            logger.info(f"{type(self).__name__}: {e}")
            raise ViewError(error_message)
        if not isinstance(body, Mapping):
            raise ViewError(error_message or "Unexpected response from VistaWP server")
        return body

    @property
    def record(self) -> Optional[FieldNormalizer]:
        self._load()
        return self._record

    @property
    def error(self) -> Optional[str]:
        return self._load()

    def get_field(self, name: str) -> str:
        error = self._load()
        if error is not None:
            return error
        return self._record.get_field(name)

    def data_field(self, atts: Any) -> str:
        error = self._load()
        if error is not None:
            return error
        return self._record.display_field(atts)


class SingleListingView(SingleRecordView):
    """Listing named by the `listing` query param, with room details."""

    PARAM_ERR_MSG = "<p>Listing MLS ID must be in the URL parameter 'listing'</p>"
    API_ERR_MSG = "<p>Unable to retrieve listing</p>"

    normalizer_cls = ListingNormalizer

    def load_record(self) -> FieldNormalizer:
        listing_id = query_value(self.context.query, 'listing')
        if not listing_id.strip():
            raise ViewError(self.PARAM_ERR_MSG)

        client = self.context.new_client(CallDescriptor(CallType.SINGLE_PROPERTY, listing_id))
        client.add_param('include', 'rooms')
        body = self._call(client, self.API_ERR_MSG)
        return self.normalizer_cls(body, config=self.context.config)


class OpenHouseView(SingleRecordView):
    """Open house named by the `openhouse` query param."""

    PARAM_ERR_MSG = '<p>Open house ID must be in the URL parameter "openhouse"</p>'

    normalizer_cls = OpenHouseNormalizer

    def load_record(self) -> FieldNormalizer:
        open_house_id = query_value(self.context.query, 'openhouse')
        if not open_house_id.strip():
            raise ViewError(self.PARAM_ERR_MSG)

        client = self.context.new_client(CallDescriptor(CallType.SINGLE_OPEN_HOUSE, open_house_id))
        body = self._call(client)
        return self.normalizer_cls(body, config=self.context.config)


class AnalyticsView(SingleRecordView):
    """Market analytics for the listing query in the visitor's params."""

    API_ERR_MSG = "<p>Unable to retrieve analytics</p>"

    normalizer_cls = AnalyticsNormalizer

    def load_record(self) -> FieldNormalizer:
        params = ANALYTICS_PARAMS.collect(
            self.context.query, trim_tokens=self.context.config.TRIM_PARAM_TOKENS
        )
        client = self.context.new_client(CallDescriptor(CallType.ANALYTICS))
        for name, value in params.items():
            client.add_param(name, value)
        body = self._call(client, self.API_ERR_MSG)
        return self.normalizer_cls(body, config=self.context.config)
