"""
Listing Normalizer - SimplyRETS property record to display fields

Field handlers for the nested parts of a listing record. Everything not
listed here (listPrice, mlsId, remarks, ...) goes through the generic
formatter under its own name.

Fields written besides the raw top-level scalars:

    property      sqft, baths, rooms, rooms-info, parking-leased,
                  parking-spaces, parking-description, + property.* scalars
    office        office-email, office-phone, office-cell, office-name,
                  office-servingname, office-brokerid
    agent         agent-contact-*, agent-*
    address       address (one line), + address.* scalars
    school        school-district, + school.* scalars
    mls/geo/tax   their scalars, unprefixed
    association   hoa-*
    photos        first-photo .. tenth-photo (+ -url, -url-non-protocol), photos
    virtualTourUrl  link or "No virtual tour available"
    modified      last-modified-date, last-modified-time
    (derived)     sqftPrice, viewButton
"""

import logging
from typing import Any, Mapping

from markupsafe import escape

from vista.constants import FIELD_ERROR
from vista.fields.base import (
    FieldNormalizer,
    FlattenHandler,
    PhotoSlotsHandler,
    RatioField,
    TimestampHandler,
    handler_registry,
    html_paragraphs,
    long_date,
    long_time,
    to_number,
)
from vista.utils.sanitize import esc_url, is_valid_url

logger = logging.getLogger(__name__)

NO_ROOMS_MSG = "No rooms found"
NO_TOUR_MSG = "No virtual tour available"

# Listing detail page the "View Listing" button points at
LISTING_PAGE_PATH = "/individual-listing/"

_OFFICE_FIELDS = (
    'office-email',
    'office-phone',
    'office-cell',
    'office-name',
    'office-servingName',
    'office-brokerid',
)


# =============================================================================
# Handlers
# =============================================================================

def handle_property(listing: FieldNormalizer, name: str, value: Any) -> None:
    """Property details: area, baths, parking and rooms get dedicated fields."""
    if value is None:
        for target in ('sqft', 'baths', 'rooms', 'rooms-info',
                       'parking-leased', 'parking-spaces', 'parking-description'):
            listing.set_text(target, None)
        return
    if not isinstance(value, Mapping):
        raise TypeError(f"Expected property object, got {type(value).__name__}")

    remaining = dict(value)
    parking = remaining.pop('parking', None) or {}
    has_rooms = 'rooms' in remaining
    rooms = remaining.pop('rooms', None)

    listing.format_field('sqft', remaining.pop('area', None))

    baths_full = to_number(remaining.get('bathsFull'))
    baths_half = to_number(remaining.get('bathsHalf'))
    if baths_full is None and baths_half is None:
        listing.set_text('baths', None)
    else:
        listing.format_field('baths', (baths_full or 0) + 0.5 * (baths_half or 0))

    listing.format_field('parking-leased', parking.get('leased'))
    listing.format_field('parking-spaces', parking.get('spaces'))
    listing.format_field('parking-description', parking.get('description'))

    if not has_rooms:
        listing.format_field('rooms', 0)
        listing.set_text('rooms-info', NO_ROOMS_MSG)
    elif rooms is None:
        listing.set_text('rooms', None)
        listing.set_text('rooms-info', None)
    elif isinstance(rooms, list):
        listing.format_field('rooms', len(rooms))
        listing.set_text('rooms-info', html_paragraphs(
            room.get('typeText') if isinstance(room, Mapping) else None
            for room in rooms
        ))
    else:
        listing.format_field('rooms', 0)
        listing.set_text('rooms-info', FIELD_ERROR)

    listing.flatten(remaining)


def handle_office(listing: FieldNormalizer, name: str, value: Any) -> None:
    if value is None:
        for target in _OFFICE_FIELDS:
            listing.set_text(target, None)
        return

    contact = value.get('contact') or {}
    listing.format_field('office-email', contact.get('email'))
    listing.format_field('office-phone', contact.get('office'))
    listing.format_field('office-cell', contact.get('cell'))
    listing.format_field('office-name', value.get('name'))
    listing.format_field('office-servingName', value.get('servingName'))
    listing.format_field('office-brokerid', value.get('brokerid'))


def handle_agent(listing: FieldNormalizer, name: str, value: Any) -> None:
    if value is None:
        return
    remaining = dict(value)
    listing.flatten(remaining.pop('contact', None), 'agent-contact-')
    listing.flatten(remaining, 'agent-')


def handle_address(listing: FieldNormalizer, name: str, value: Any) -> None:
    """One-line 'address' field plus the individual address parts."""
    if value is None:
        listing.set_text('address', None)
        return

    def part(key: str) -> str:
        item = value.get(key)
        return '' if item is None else str(item)

    unit = f"Unit {part('unit')}, " if value.get('unit') else ""
    listing.set_text(
        'address',
        f"{part('streetNumberText')} {part('streetName')}, {unit}{part('city')}, "
        f"{part('state')} {part('postalCode')}",
    )
    listing.flatten(value)


def handle_school(listing: FieldNormalizer, name: str, value: Any) -> None:
    if value is None:
        return
    remaining = dict(value)
    if 'district' in remaining:
        listing.format_field('school-district', remaining.pop('district'))
    listing.flatten(remaining)


def handle_tour(listing: FieldNormalizer, name: str, value: Any) -> None:
    if is_valid_url(value):
        listing.set_text(name, f"<a class='vista-tour-button' href='{esc_url(value)}'>Virtual Tour</a>")
    else:
        listing.set_text(name, NO_TOUR_MSG)


class ViewButtonField:
    """Derived 'viewButton': link to the listing detail page for this mlsId."""

    target = 'viewButton'

    def __call__(self, listing: FieldNormalizer) -> None:
        mls_id = listing.lookup('mlsId')
        if mls_id is None or mls_id == "":
            listing.set_text(self.target, None)
            return
        url = f"{listing.config.SITE_URL}{LISTING_PAGE_PATH}?listing={escape(str(mls_id))}"
        listing.set_text(
            self.target,
            f"<a href='{url}' class='vista-view-listing-button'>View Listing</a>",
        )


# =============================================================================
# Normalizer
# =============================================================================

class ListingNormalizer(FieldNormalizer):
    """
    One listing record.

    Example:
        listing = ListingNormalizer({"listPrice": 300000, "property": {"area": 1500}})
        listing.get_field("sqftPrice")  # "200.00"
    """

    handlers = handler_registry({
        'property': handle_property,
        'office': handle_office,
        'agent': handle_agent,
        'address': handle_address,
        'school': handle_school,
        'mls': FlattenHandler(),
        'association': FlattenHandler('hoa-'),
        'photos': PhotoSlotsHandler(),
        'geo': FlattenHandler(),
        'tax': FlattenHandler(),
        'virtualTourUrl': handle_tour,
        'modified': TimestampHandler([
            ('last-modified-date', long_date),
            ('last-modified-time', long_time),
        ]),
    })

    number_fields = frozenset({'listPrice', 'sqft', 'sqftPrice'})

    derived_fields = (
        RatioField('sqftPrice', 'listPrice', 'property.area'),
        ViewButtonField(),
    )
