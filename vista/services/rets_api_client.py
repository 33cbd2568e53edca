"""
RETS API Client - Listing data fetching through the Vista proxy

The Vista proxy wraps the SimplyRETS API. Every call is a POST to a single
endpoint; the target resource is selected with query parameters:

    POST <API_URL>?endpoint=<type>[&objectID=<id>]&<params...>[&nocache=<ts>]

Authentication:
- Basic auth with the shared proxy credential (Config.API_USER/API_PASSWORD)
- Form body `key=<license token>`; an empty token returns demo data

Response envelope:
    {"headers": {"X-Total-Count": ["45"], ...}, "body": [...] | {...},
     "error": true, "message": "..."}   # error/message only on failure

Cache busting:
    A failed call stores its timestamp in the `vista_api_err_time` setting.
    For 24 hours afterwards every request carries `nocache=<timestamp>` so an
    HTTP cache in front of the proxy cannot keep serving the failure. The
    first successful call clears the marker.

Usage:
    from vista.services.rets_api_client import RetsAPIClient, CallDescriptor, CallType

    client = RetsAPIClient(CallDescriptor(CallType.SINGLE_PROPERTY, "1005192"),
                           settings=store, license_provider=license)
    client.add_param("include", "rooms")
    listing = client.get_response()
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union
from urllib.parse import quote_plus

import requests
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from vista.config import Config
from vista.constants import ERR_TIME_SETTING, ERR_TIME_WINDOW_SECONDS
from vista.services.license import LicenseProvider, StaticLicense
from vista.services.param_collector import ParameterSet
from vista.services.settings_store import MemorySettingsStore, SettingsStore

logger = logging.getLogger(__name__)

__all__ = [
    'CallType',
    'CallDescriptor',
    'ApiResponse',
    'ResponseEnvelope',
    'RetsAPIClient',
    'RetsAPIError',
    'TransportError',
    'MalformedResponseError',
    'UpstreamError',
    'ClientStateError',
    'ConfigurationError',
]


# =============================================================================
# Call Types
# =============================================================================

class CallType(str, Enum):
    """Endpoints exposed by the proxy."""
    PROPERTY_LISTINGS = "properties"
    SINGLE_PROPERTY = "property"
    OPEN_HOUSES = "openhouses"
    SINGLE_OPEN_HOUSE = "openhouse"
    AGENTS = "agents"
    ANALYTICS = "analytics"
    SINGLE_ANALYTICS = "analytic"


# Endpoints that address one record and therefore need an objectID
RECORD_SCOPED_TYPES = frozenset({
    CallType.SINGLE_PROPERTY,
    CallType.SINGLE_OPEN_HOUSE,
    CallType.SINGLE_ANALYTICS,
})


# =============================================================================
# Exceptions
# =============================================================================

class ConfigurationError(ValueError):
    """Invalid client construction (programming error, raised immediately)."""
    pass


class RetsAPIError(Exception):
    """Base exception for RETS API call failures."""
    pass


class TransportError(RetsAPIError):
    """Network failure, timeout, or an undecodable response body."""
    pass


class MalformedResponseError(RetsAPIError):
    """Decoded envelope is missing its 'headers' or 'body' key."""
    pass


class UpstreamError(RetsAPIError):
    """The proxy reported an error in the envelope."""

    def __init__(self, upstream_message: str):
        super().__init__(f"Error returned by API: {upstream_message}")
        self.upstream_message = upstream_message


class ClientStateError(RetsAPIError):
    """Parameters added after the call was made."""
    pass


# =============================================================================
# Request / Response Models
# =============================================================================

@dataclass(frozen=True)
class CallDescriptor:
    """
    Identifies the endpoint (and record, for record-scoped endpoints) of a call.

    Raises:
        ConfigurationError: Unknown call type, or a record-scoped type
            without a single_record_id.
    """
    call_type: CallType
    single_record_id: str = ""

    def __post_init__(self):
        try:
            call_type = CallType(self.call_type)
        except ValueError:
            raise ConfigurationError(f"Bad call type: {self.call_type}")
        object.__setattr__(self, 'call_type', call_type)

        record_id = (self.single_record_id or "").strip()
        object.__setattr__(self, 'single_record_id', record_id)

        if self.is_record_scoped and not record_id:
            raise ConfigurationError(
                f"Must set single_record_id with call type {call_type.value}"
            )

    @property
    def is_record_scoped(self) -> bool:
        return self.call_type in RECORD_SCOPED_TYPES

    def query_pairs(self) -> List[Tuple[str, str]]:
        """Mandatory leading query parameters for this call."""
        pairs = [("endpoint", self.call_type.value)]
        if self.is_record_scoped:
            pairs.append(("objectID", self.single_record_id))
        return pairs


class ResponseEnvelope(BaseModel):
    """Proxy response envelope."""
    model_config = ConfigDict(extra='allow')

    headers: Dict[str, List[str]]
    body: Union[Dict[str, Any], List[Any]]
    error: Optional[Any] = None
    message: Optional[Any] = None

    @field_validator('headers', mode='before')
    @classmethod
    def _listify_header_values(cls, value: Any) -> Any:
        # PHP encodes an empty header array as [], and some proxy versions
        # send single-valued headers as bare strings
        if isinstance(value, list) and not value:
            return {}
        if isinstance(value, dict):
            return {
                str(name): [str(v) for v in values] if isinstance(values, list) else [str(values)]
                for name, values in value.items()
            }
        return value

    @property
    def has_error(self) -> bool:
        return error_flag_set(self.error)


def error_flag_set(error: Any) -> bool:
    """True when the envelope's 'error' value marks a failed call."""
    return error is not None and error is not False


def upstream_message(message: Any) -> str:
    """Display text for the envelope's 'message' value, whatever its JSON type."""
    if message is None or message == "":
        return "unknown error"
    return str(message)


@dataclass
class ApiResponse:
    """Decoded body and headers of one successful call."""
    body: Union[Dict[str, Any], List[Any]]
    headers: Dict[str, List[str]]

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a header, matched case-insensitively."""
        wanted = name.lower()
        for key, values in self.headers.items():
            if key.lower() == wanted and values:
                return values[0]
        return default


# =============================================================================
# Client
# =============================================================================

class RetsAPIClient:
    """
    One-shot client for a single proxy call.

    An instance makes at most one network request. The first
    get_response()/get_headers() performs it; later calls return the cached
    result, or re-raise the cached error without retrying.

    Example:
        client = RetsAPIClient(CallDescriptor(CallType.PROPERTY_LISTINGS))
        client.add_param("cities", ["Houston", "Dallas"])
        client.add_param("limit", 20)
        listings = client.get_response()
        total = client.get_headers().get("X-Total-Count", ["0"])[0]
    """

    def __init__(
        self,
        descriptor: CallDescriptor,
        *,
        settings: Optional[SettingsStore] = None,
        license_provider: Optional[LicenseProvider] = None,
        session: Optional[requests.Session] = None,
        config=Config,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            descriptor: Endpoint (and record id) to call
            settings: Persisted store for the last-error marker
            license_provider: Supplies the caller's license token
            session: HTTP transport; a private Session is created if omitted
            config: Settings object (URL, credentials, timeout)
            clock: Unix time source, injectable for tests
        """
        if not isinstance(descriptor, CallDescriptor):
            raise ConfigurationError("descriptor must be a CallDescriptor")

        self.descriptor = descriptor
        self.settings = settings if settings is not None else MemorySettingsStore()
        self.license_provider = license_provider or StaticLicense()
        self.config = config
        self._clock = clock

        self._owns_session = session is None
        self._session = session or requests.Session()
        if self._owns_session:
            self._session.headers.update({"User-Agent": config.USER_AGENT})

        self._params = ParameterSet()
        self._fetched = False
        self._response: Optional[ApiResponse] = None
        self._error: Optional[RetsAPIError] = None

    # =========================================================================
    # Parameters
    # =========================================================================

    def add_param(self, name: str, value: Any) -> None:
        """
        Add a request parameter (scalar or list) before the call is made.

        Repeated names are merged into a list and sent as repeated pairs.
        Parameter semantics are not validated; the proxy reports bad values.

        Raises:
            ClientStateError: If the call has already been made.
        """
        if self._fetched:
            raise ClientStateError(
                "API has already been called with this object, more parameters cannot be added"
            )
        self._params.merge(name, value)

    @property
    def params(self) -> ParameterSet:
        return self._params

    # =========================================================================
    # Last-error marker
    # =========================================================================

    def _set_err_time(self) -> None:
        self.settings.set(ERR_TIME_SETTING, str(int(self._clock())))

    def _clear_err_time(self) -> None:
        self.settings.set(ERR_TIME_SETTING, "")

    def _maybe_get_err_time(self) -> Optional[str]:
        """
        Timestamp of a failed call within the last 24h, else None.

        A stale marker is cleared so later renders skip this check cheaply.
        """
        err_time = self.settings.get(ERR_TIME_SETTING, "")
        try:
            err_ts = int(float(err_time))
        except (TypeError, ValueError):
            return None

        if self._clock() - err_ts < ERR_TIME_WINDOW_SECONDS:
            return str(err_ts)

        self._clear_err_time()
        return None

    # =========================================================================
    # Request
    # =========================================================================

    def _query_pairs(self) -> Iterator[Tuple[str, str]]:
        yield from self.descriptor.query_pairs()
        yield from self._params.pairs()

    def build_url(self, nocache: Optional[str] = None) -> str:
        """Full request URL: endpoint, record id, params in order, then nocache."""
        pairs = list(self._query_pairs())
        if nocache:
            pairs.append(("nocache", nocache))
        query = "&".join(f"{name}={quote_plus(value, safe=',')}" for name, value in pairs)
        return f"{self.config.API_URL}?{query}"

    def _fail(self, error: RetsAPIError) -> None:
        self._set_err_time()
        self._error = error
        logger.error(f"RETS API call ({self.descriptor.call_type.value}) failed: {error}")
        raise error

    def _fetch(self) -> ApiResponse:
        self._fetched = True
        url = self.build_url(nocache=self._maybe_get_err_time())
        logger.info(f"RETS API request: {url}")

        start_time = time.time()
        try:
            response = self._session.post(
                url,
                auth=(self.config.API_USER, self.config.API_PASSWORD),
                data={"key": self.license_provider.get_key()},
                timeout=self.config.API_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            self._fail(TransportError(f"API Error {type(e).__name__} occurred: {e}"))

        try:
            payload = response.json()
        except ValueError as e:
            self._fail(TransportError(
                f"API Error: undecodable response (HTTP {response.status_code}): {e}"
            ))

        if not isinstance(payload, dict) or 'headers' not in payload or 'body' not in payload:
            self._fail(MalformedResponseError(
                "Malformed response from VistaWP server: missing headers or body"
            ))

        if error_flag_set(payload.get('error')):
            self._fail(UpstreamError(upstream_message(payload.get('message'))))

        try:
            envelope = ResponseEnvelope.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Envelope failed validation: {e.errors(include_url=False)}")
            self._fail(MalformedResponseError(
                "Malformed response from VistaWP server: invalid headers or body"
            ))

        self._clear_err_time()
        duration = time.time() - start_time
        logger.info(
            f"RETS API ({self.descriptor.call_type.value}) succeeded in {duration:.2f}s"
        )
        return ApiResponse(body=envelope.body, headers=envelope.headers)

    # =========================================================================
    # Results
    # =========================================================================

    def fetch(self) -> ApiResponse:
        """
        Perform the call once and return the cached ApiResponse thereafter.

        Raises:
            TransportError, MalformedResponseError, UpstreamError: on failure,
            and again (same instance) on every later call.
        """
        if self._response is not None:
            return self._response
        if self._error is not None:
            raise self._error

        self._response = self._fetch()
        return self._response

    def get_response(self) -> Union[Dict[str, Any], List[Any]]:
        """Decoded response body."""
        return self.fetch().body

    def get_headers(self) -> Dict[str, List[str]]:
        """Response headers (name -> list of values)."""
        return self.fetch().headers

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
