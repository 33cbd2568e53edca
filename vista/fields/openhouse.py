"""
Open House Normalizer

An open house record embeds the full listing it belongs to. Fields not found
on the open house itself are resolved against that embedded listing, so a
template can mix [startTime] with [address] or [first-photo].
"""

from typing import Any, Optional

from vista.config import Config
from vista.constants import FIELD_ERROR, FIELD_NONE
from vista.fields.base import FieldNormalizer, TimestampHandler, handler_registry, short_datetime
from vista.fields.listing import ListingNormalizer


def handle_listing(open_house: "OpenHouseNormalizer", name: str, value: Any) -> None:
    if not isinstance(value, dict):
        return
    open_house.listing = ListingNormalizer(value, config=open_house.config)


class OpenHouseNormalizer(FieldNormalizer):
    """
    One open house record.

    startTime/endTime are shown as "Jan 5, 2024: 3:07 PM" in Config.TIMEZONE.
    """

    _open_house_time = TimestampHandler([(None, short_datetime)], keep_unparseable=True, localize=True)

    handlers = handler_registry({
        'listing': handle_listing,
        'startTime': _open_house_time,
        'endTime': _open_house_time,
    })

    def __init__(self, record, *, config=Config):
        self.listing: Optional[ListingNormalizer] = None
        super().__init__(record, config=config)

    def get_field(self, name: Optional[str]) -> str:
        if name is None:
            return FIELD_NONE
        if name in self.fields:
            return self.fields.get_field(name)
        if self.listing is not None:
            return self.listing.get_field(name)
        return FIELD_ERROR
