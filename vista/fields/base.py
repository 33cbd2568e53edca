"""
Field Normalizer - RETS records to flat display fields

Turns one decoded API record (nested dicts/lists/scalars, any field possibly
missing or null) into a FieldTable: lower-cased field name -> display string.

Processing model:
- Top-level fields are visited in the record's own order
- A field with a registered handler is passed to it; the handler may write
  zero, one or many fields, under any names
- Any other field goes through the generic scalar formatter
- A failing handler degrades only its own field to FIELD_ERROR
- Derived fields (computed from several raw fields) run after the walk

Generic scalar formatter:
    None                -> "None"
    dict / list         -> dropped (cannot be rendered generically)
    number field, int   -> "1,500"
    number field, float -> "1,234.57"
    bool                -> "true" / "false"
    anything else       -> str(value), integral floats without ".0"

Usage:
    from vista.fields.listing import ListingNormalizer

    listing = ListingNormalizer(api_record)
    listing.get_field("ListPrice")   # "300,000"
    listing.get_field("nonexistent") # "Field not found"
"""

import logging
import math
import re
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Dict, Iterator, Mapping, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.parser import isoparse
from markupsafe import escape

from vista.config import Config
from vista.constants import FIELD_ERROR, FIELD_MISSING, FIELD_NONE, NO_FIELD_MSG, PHOTO_SLOTS
from vista.utils.sanitize import esc_url

logger = logging.getLogger(__name__)

__all__ = [
    'FormatResult',
    'FieldHandlerError',
    'FieldTable',
    'FieldNormalizer',
    'FieldHandler',
    'handler_registry',
    'FlattenHandler',
    'PhotoSlotsHandler',
    'TimestampHandler',
    'RatioField',
    'format_number',
    'to_text',
    'parse_timestamp',
    'long_date',
    'long_time',
    'short_datetime',
    'BAD_TZ_MSG',
    'html_paragraphs',
]

BAD_TZ_MSG = "Timezone not recognized"

FieldHandler = Callable[["FieldNormalizer", str, Any], None]


class FormatResult(Enum):
    """Outcome of the generic scalar formatter."""
    STORED = "stored"
    DROPPED = "dropped"


class FieldHandlerError(Exception):
    """A single field's handler failed. Contained by the normalizer."""

    def __init__(self, field_name: str, cause: BaseException):
        super().__init__(f"Handler for field '{field_name}' failed: {type(cause).__name__}: {cause}")
        self.field_name = field_name
        self.cause = cause


def handler_registry(entries: Mapping[str, FieldHandler]) -> Mapping[str, FieldHandler]:
    """Freeze a raw-field-name -> handler table."""
    return MappingProxyType(dict(entries))


# =============================================================================
# Value Formatting
# =============================================================================

def to_text(value: Any) -> str:
    """String form of a scalar for display."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def format_number(value: Any) -> Optional[str]:
    """
    Thousands-grouped number, or None if value is not numeric.

    Integers get no decimals, everything else exactly two. Numeric strings
    are parsed first, so an integral string such as "1500" is grouped like
    the integer 1500 ("1,500") and does not get ".00" the way a
    non-integral string or float does.

    Examples:
        >>> format_number(300000)
        '300,000'
        >>> format_number(200.0)
        '200.00'
        >>> format_number("1500")
        '1,500'
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return f"{value:,.2f}"
    if isinstance(value, str):
        text = value.strip()
        try:
            return f"{int(text):,}"
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return f"{number:,.2f}"
    return None


def to_number(value: Any) -> Optional[float]:
    """
    Numeric value of a raw field, None when absent.

    Raises:
        ValueError: For a present but non-numeric value
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Expected number, got bool: {value!r}")
    return float(value)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an RFC 3339 / ISO 8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: If value is not a parseable timestamp string
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected timestamp string, got {type(value).__name__}")
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _hour12(dt: datetime) -> int:
    return dt.hour % 12 or 12


def long_date(dt: datetime) -> str:
    """January 5, 2024"""
    return f"{dt:%B} {dt.day}, {dt.year}"


def long_time(dt: datetime) -> str:
    """3:07:09 PM"""
    return f"{_hour12(dt)}:{dt:%M}:{dt:%S} {'AM' if dt.hour < 12 else 'PM'}"


def short_datetime(dt: datetime) -> str:
    """Jan 5, 2024: 3:07 PM"""
    return f"{dt:%b} {dt.day}, {dt.year}: {_hour12(dt)}:{dt:%M} {'AM' if dt.hour < 12 else 'PM'}"


# =============================================================================
# Field Table
# =============================================================================

class FieldTable(Mapping[str, str]):
    """Case-insensitive, string-valued field store. Misses return FIELD_MISSING."""

    def __init__(self):
        self._fields: Dict[str, str] = {}

    def set(self, name: str, value: str) -> None:
        self._fields[name.lower()] = value

    def get_field(self, name: str) -> str:
        return self._fields.get(str(name).lower(), FIELD_MISSING)

    def __getitem__(self, name: str) -> str:
        return self._fields[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._fields)

    def __repr__(self) -> str:
        return f"FieldTable({self._fields!r})"


# =============================================================================
# Normalizer
# =============================================================================

class FieldNormalizer:
    """
    Base class for record types (listing, open house, analytics).

    Subclasses declare, once per class:
        handlers:       raw field name -> FieldHandler
        number_fields:  field names formatted as grouped numbers
        derived_fields: callables run after the walk, each taking the normalizer
    """

    handlers: ClassVar[Mapping[str, FieldHandler]] = handler_registry({})
    number_fields: ClassVar[frozenset] = frozenset()
    derived_fields: ClassVar[Tuple[Any, ...]] = ()

    def __init__(self, record: Mapping[str, Any], *, config=Config):
        if not isinstance(record, Mapping):
            raise TypeError(f"Record must be a mapping, got {type(record).__name__}")
        self.record = record
        self.config = config
        self.fields = FieldTable()
        self._number_fields = frozenset(name.lower() for name in self.number_fields)
        self._normalize()

    def _normalize(self) -> None:
        for name, value in self.record.items():
            handler = self.handlers.get(name)
            if handler is None:
                self.format_field(name, value)
                continue
            try:
                handler(self, name, value)
            except Exception as e:
                logger.debug(str(FieldHandlerError(name, e)))
                self.set_text(name, FIELD_ERROR)

        for derived in self.derived_fields:
            try:
                derived(self)
            except Exception as e:
                target = getattr(derived, 'target', type(derived).__name__)
                logger.debug(str(FieldHandlerError(target, e)))
                self.set_text(target, FIELD_ERROR)

        self.finalize()

    def finalize(self) -> None:
        """Hook for record-wide adjustments after all fields are written."""
        pass

    # =========================================================================
    # Writers
    # =========================================================================

    def set_text(self, name: str, value: Optional[str]) -> None:
        """Store a display string as-is; None becomes the FIELD_NONE sentinel."""
        self.fields.set(name, FIELD_NONE if value is None else value)

    def format_field(self, name: str, value: Any) -> FormatResult:
        """
        Generic scalar formatter.

        Returns:
            FormatResult.DROPPED for nested values (nothing written),
            FormatResult.STORED otherwise.
        """
        if value is None:
            self.set_text(name, None)
            return FormatResult.STORED
        if isinstance(value, (Mapping, list, tuple, set)):
            return FormatResult.DROPPED

        if name.lower() in self._number_fields:
            formatted = format_number(value)
            if formatted is not None:
                self.set_text(name, formatted)
                return FormatResult.STORED

        self.set_text(name, to_text(value))
        return FormatResult.STORED

    def flatten(self, values: Optional[Mapping[str, Any]], prefix: str = "") -> None:
        """Write each sub-field of a nested object through the generic formatter."""
        if not values:
            return
        for sub_name, sub_value in values.items():
            self.format_field(f"{prefix}{sub_name}", sub_value)

    # =========================================================================
    # Readers
    # =========================================================================

    def lookup(self, path: str) -> Any:
        """Raw record value at a dotted path ("property.area"), None if absent."""
        value: Any = self.record
        for part in path.split('.'):
            if not isinstance(value, Mapping):
                return None
            value = value.get(part)
        return value

    def get_field(self, name: str) -> str:
        return self.fields.get_field(name)

    def display_field(self, atts: Any) -> str:
        """Template hook: atts must carry a 'field' entry."""
        if not isinstance(atts, Mapping) or 'field' not in atts:
            return NO_FIELD_MSG
        return self.get_field(atts['field'])

    def get_fields(self) -> Dict[str, str]:
        return self.fields.as_dict()

    def timezone(self):
        """Display timezone from config. Raises ZoneInfoNotFoundError/ValueError."""
        return ZoneInfo(self.config.TIMEZONE)


# =============================================================================
# Reusable Handlers
# =============================================================================

class FlattenHandler:
    """
    Flatten a nested object's scalar sub-fields, optionally prefixed.

    'association': {"fee": 250} with prefix "hoa-" -> "hoa-fee" = "250".
    A scalar in place of the object is formatted under the field's own name.
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def __call__(self, normalizer: FieldNormalizer, name: str, value: Any) -> None:
        if value is None:
            return
        if isinstance(value, Mapping):
            normalizer.flatten(value, self.prefix)
        else:
            normalizer.format_field(name, value)


class PhotoSlotsHandler:
    """
    Photo list -> ordinal photo fields plus one slideshow fragment.

    For each slot ("first-photo" .. "tenth-photo") writes:
        <slot>                    <img> element
        <slot>-url                escaped URL
        <slot>-url-non-protocol   URL without its http(s):// scheme
    Slots past the end of the list get the FIELD_NONE sentinel.
    """

    _SCHEME_RE = re.compile(r'^https?://', re.IGNORECASE)

    def __init__(self, slots: Sequence[str] = PHOTO_SLOTS, target: str = 'photos'):
        self.slots = tuple(slots)
        self.target = target

    def __call__(self, normalizer: FieldNormalizer, name: str, value: Any) -> None:
        if value is None:
            value = []
        elif not isinstance(value, (list, tuple)):
            raise TypeError(f"Expected list of photo URLs, got {type(value).__name__}")

        urls = [esc_url(url) for url in value if isinstance(url, str) and url]

        for index, slot in enumerate(self.slots):
            url = urls[index] if index < len(urls) else None
            if url is None:
                normalizer.set_text(slot, None)
                normalizer.set_text(f"{slot}-url", None)
                normalizer.set_text(f"{slot}-url-non-protocol", None)
                continue
            normalizer.set_text(
                slot,
                f"<img class='vista-lead-photo' src='{url}' alt='Property cover photo' loading='lazy'>",
            )
            normalizer.set_text(f"{slot}-url", url)
            normalizer.set_text(f"{slot}-url-non-protocol", self._SCHEME_RE.sub('', url))

        normalizer.set_text(self.target, self._slideshow(urls) if urls else None)

    @staticmethod
    def _slideshow(urls: Sequence[str]) -> str:
        slides = []
        for index, url in enumerate(urls):
            default_slide = ' vista-display-default-slide' if index == 0 else ''
            slides.append(
                f"<div class='vista-slide-item vista-display-fade{default_slide}'>"
                f"<img class='vista-listing-photo' src='{url}' alt='Property photo' loading='lazy'>"
                f"</div>"
            )
        return (
            "<div id='vista-slide-number'></div>\n"
            "<div class='vista-slideshow-container'>\n"
            f"  {''.join(slides)}\n"
            "  <a class='vista-grid-prev' onclick='plusSlides(-1)'>&#10094;</a>\n"
            "  <a class='vista-grid-next' onclick='plusSlides(1)'>&#10095;</a>\n"
            "</div>"
        )


class TimestampHandler:
    """
    Timestamp field -> one or more formatted fields.

    Args:
        outputs: (target name, formatter) pairs; a None target means the
            field's own name
        keep_unparseable: Write the raw value when parsing fails, instead of
            FIELD_ERROR
        localize: Convert to the configured display timezone first
    """

    def __init__(
        self,
        outputs: Sequence[Tuple[Optional[str], Callable[[datetime], str]]],
        *,
        keep_unparseable: bool = False,
        localize: bool = False,
    ):
        self.outputs = tuple(outputs)
        self.keep_unparseable = keep_unparseable
        self.localize = localize

    def __call__(self, normalizer: FieldNormalizer, name: str, value: Any) -> None:
        targets = [(target or name, formatter) for target, formatter in self.outputs]

        if value is None:
            for target, _ in targets:
                normalizer.set_text(target, None)
            return

        try:
            parsed = parse_timestamp(value)
        except (ValueError, OverflowError):
            for target, _ in targets:
                if self.keep_unparseable:
                    normalizer.format_field(target, value)
                else:
                    normalizer.set_text(target, FIELD_ERROR)
            return

        if self.localize:
            try:
                parsed = parsed.astimezone(normalizer.timezone())
            except (ZoneInfoNotFoundError, ValueError):
                for target, _ in targets:
                    normalizer.set_text(target, BAD_TZ_MSG)
                return

        for target, formatter in targets:
            normalizer.set_text(target, formatter(parsed))


class RatioField:
    """
    Derived field: numerator / denominator from two raw record paths.

    A missing numerator, or a zero/missing denominator, yields FIELD_NONE
    instead of a division error.
    """

    def __init__(self, target: str, numerator: str, denominator: str):
        self.target = target
        self.numerator = numerator
        self.denominator = denominator

    def __call__(self, normalizer: FieldNormalizer) -> None:
        numerator = to_number(normalizer.lookup(self.numerator))
        denominator = to_number(normalizer.lookup(self.denominator))
        if numerator is None or not denominator:
            normalizer.set_text(self.target, None)
            return
        normalizer.format_field(self.target, numerator / denominator)


def html_paragraphs(items: Sequence[Any]) -> str:
    """<p>item</p> per item, escaped."""
    return ''.join(f"<p>{escape('' if item is None else item)}</p>" for item in items)
