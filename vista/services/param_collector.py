"""
Parameter Collector - Visitor query string to RETS API parameters

Maps external (visitor-facing) query parameter names to RETS API parameter
names and merges repeated values into a ParameterSet.

Every API parameter is accepted under two external names: the prefixed
form ("vista-minprice") and the bare legacy form ("minprice"). Both map to
the same API name, so a visitor URL carrying both yields a repeated
parameter rather than one silently overriding the other.

Usage:
    from vista.services.param_collector import LISTING_PARAMS

    params = LISTING_PARAMS.collect(request.args)
    for name, value in params.items():
        client.add_param(name, value)
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from vista.constants import PARAM_PREFIX
from vista.utils.sanitize import sanitize_text, split_param_value

logger = logging.getLogger(__name__)

__all__ = [
    'ParamValue',
    'ParameterSet',
    'ParamCollector',
    'LISTING_PARAMS',
    'OPENHOUSE_PARAMS',
    'ANALYTICS_PARAMS',
    'listing_param_names',
]

ParamValue = Union[str, List[str]]


# =============================================================================
# Parameter Set
# =============================================================================

class ParameterSet:
    """
    Ordered mapping of API parameter name to a scalar or a list of strings.

    A list value means the parameter is repeated on the wire. Merging follows
    one rule set everywhere (collector and API client):

        absent          + value  -> value
        scalar          + scalar -> [old, new]
        scalar          + list   -> [old, *new]
        list            + scalar -> [*old, new]
        list            + list   -> [*old, *new]

    Merging N values for a name therefore always yields N elements in the
    order they arrived.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._params: Dict[str, ParamValue] = {}
        if initial:
            for name, value in initial.items():
                self.merge(name, value)

    def merge(self, name: str, value: Any) -> None:
        """Merge a scalar or list value into the set under name."""
        if isinstance(value, (list, tuple)):
            new_values = [_as_str(item) for item in value]
            if not new_values:
                return
            existing = self._params.get(name)
            if existing is None:
                self._params[name] = new_values
            elif isinstance(existing, list):
                existing.extend(new_values)
            else:
                self._params[name] = [existing] + new_values
            return

        new_value = _as_str(value)
        existing = self._params.get(name)
        if existing is None:
            self._params[name] = new_value
        elif isinstance(existing, list):
            existing.append(new_value)
        else:
            self._params[name] = [existing, new_value]

    def get(self, name: str, default: Optional[ParamValue] = None) -> Optional[ParamValue]:
        return self._params.get(name, default)

    def first(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value for name, whether stored as scalar or list."""
        value = self._params.get(name)
        if value is None:
            return default
        if isinstance(value, list):
            return value[0] if value else default
        return value

    def items(self) -> Iterable[Tuple[str, ParamValue]]:
        return self._params.items()

    def pairs(self) -> Iterator[Tuple[str, str]]:
        """Yield (name, value) wire pairs, expanding list values in order."""
        for name, value in self._params.items():
            if isinstance(value, list):
                for item in value:
                    yield name, item
            else:
                yield name, value

    def to_dict(self) -> Dict[str, ParamValue]:
        return {
            name: list(value) if isinstance(value, list) else value
            for name, value in self._params.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._params

    def __getitem__(self, name: str) -> ParamValue:
        return self._params[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ParameterSet):
            return self._params == other._params
        if isinstance(other, Mapping):
            return self._params == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ParameterSet({self._params!r})"


def _as_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# Collector
# =============================================================================

class ParamCollector:
    """
    Collects RETS API parameters from an external key/value source.

    One collector per search type; they differ only in the mapping table.

    Example:
        collector = ParamCollector({"vista-cities": "cities", "cities": "cities"})
        params = collector.collect({"cities": "Houston, Dallas"})
        params["cities"]  # ['Houston', 'Dallas']
    """

    def __init__(self, mappings: Mapping[str, str], *, trim_tokens: bool = False):
        """
        Args:
            mappings: External name -> API name, in collection order
            trim_tokens: Strip whitespace around each split token
        """
        self.mappings = dict(mappings)
        self.trim_tokens = trim_tokens

    def collect(self, source: Mapping[str, Any], *, trim_tokens: Optional[bool] = None) -> ParameterSet:
        """
        Build a ParameterSet from source.

        Absent keys and empty values ("", [], None) are skipped. String
        values are sanitized and split on the multi-value separators; list
        values (e.g. "cities[]=a&cities[]=b") are sanitized item by item.

        Never raises for unknown or malformed input.
        """
        trim = self.trim_tokens if trim_tokens is None else trim_tokens
        params = ParameterSet()

        for external_name, api_name in self.mappings.items():
            raw = source.get(external_name)
            if _is_empty(raw):
                continue

            if isinstance(raw, (list, tuple)):
                value: ParamValue = [sanitize_text(item) for item in raw]
            else:
                value = split_param_value(sanitize_text(raw), trim=trim)

            params.merge(api_name, value)

        logger.debug(f"Collected {len(params)} API params from {len(self.mappings)} mappings")
        return params

    def api_names(self) -> List[str]:
        """Distinct API parameter names this collector can produce, in order."""
        seen: Dict[str, None] = {}
        for api_name in self.mappings.values():
            seen.setdefault(api_name, None)
        return list(seen)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _prefixed_mappings(api_names: Iterable[str]) -> Dict[str, str]:
    """Prefixed external names first, then the bare legacy names."""
    names = list(api_names)
    mappings = {f"{PARAM_PREFIX}{name}": name for name in names}
    mappings.update({name: name for name in names})
    return mappings


# =============================================================================
# Mapping Tables
# =============================================================================

_LISTING_API_NAMES = [
    'offset', 'limit',  # pagination
    'q', 'status', 'type', 'subtype', 'subTypeText',
    'agent', 'salesAgent', 'brokers',
    'specialListingConditions', 'ownership',
    'minprice', 'maxprice', 'minarea', 'maxarea',
    'minbaths', 'maxbaths', 'minbeds', 'maxbeds',
    'maxdom', 'minlistdate', 'maxlistdate',
    'minyear', 'maxyear', 'minacres', 'maxacres',
    'minGarageSpaces', 'maxGarageSpaces',
    'lastId', 'postalCodes', 'features', 'exteriorFeatures', 'water',
    'neighborhoods', 'cities', 'state', 'counties', 'points',
    'idx', 'include', 'sort', 'count',
    'listing_ids', 'mls_area',
]

_OPENHOUSE_API_NAMES = [
    'offset', 'limit',
    'type', 'listingId', 'cities', 'brokers', 'agent',
    'minprice', 'startdate', 'lastId', 'sort', 'include',
]

_ANALYTICS_API_NAMES = [
    'offset', 'limit',
    'q', 'status', 'type', 'subtype',
    'agent', 'salesAgent', 'brokers',
    'minprice', 'maxprice', 'minarea', 'maxarea',
    'minbaths', 'maxbaths', 'minbeds', 'maxbeds',
    'maxdom', 'minyear', 'maxyear', 'minacres', 'maxacres',
    'minGarageSpaces', 'maxGarageSpaces',
    'lastId', 'postalCodes', 'features', 'exteriorFeatures', 'water',
    'neighborhoods', 'cities', 'counties', 'points',
    'idx', 'include', 'sort', 'count',
]

LISTING_PARAMS = ParamCollector(_prefixed_mappings(_LISTING_API_NAMES))
OPENHOUSE_PARAMS = ParamCollector(_prefixed_mappings(_OPENHOUSE_API_NAMES))
ANALYTICS_PARAMS = ParamCollector(_prefixed_mappings(_ANALYTICS_API_NAMES))


def listing_param_names() -> List[str]:
    """Every external listing parameter name (prefixed and bare)."""
    return list(LISTING_PARAMS.mappings)
