"""
Page Context - per-render state shared by the views of one page

Holds the visitor's query params, the collaborators every API client needs
(settings store, license provider, HTTP session, config) and one instance of
each view class. Two placeholders of the same view type on a page therefore
share a single API call.

Usage:
    page = PageContext.from_config(query=request.args, page_url=request.base_url,
                                   query_string=request.query_string.decode())
    with page:
        listing = page.view(SingleListingView)
        html = listing.get_field("address")
"""

import logging
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import requests

from vista.config import Config
from vista.display.template import url_querystring
from vista.services.license import LicenseProvider, StaticLicense, StoredLicense
from vista.services.rets_api_client import CallDescriptor, RetsAPIClient
from vista.services.settings_store import MemorySettingsStore, SettingsStore, SQLSettingsStore

logger = logging.getLogger(__name__)

ViewT = TypeVar('ViewT')


class PageContext:

    def __init__(
        self,
        query: Optional[Mapping[str, Any]] = None,
        *,
        settings: Optional[SettingsStore] = None,
        license_provider: Optional[LicenseProvider] = None,
        session: Optional[requests.Session] = None,
        config=Config,
        page_url: str = "",
        query_string: str = "",
    ):
        """
        Args:
            query: Visitor query params (dict or multi-dict)
            settings: Persisted settings; in-memory when omitted
            license_provider: License token source; empty token when omitted
            session: Shared HTTP session; created on first use when omitted
            config: Settings object
            page_url: URL of the page being rendered, for pagination links
            query_string: Raw query string, for url_querystring links
        """
        self.query: Mapping[str, Any] = query if query is not None else {}
        self.settings = settings if settings is not None else MemorySettingsStore()
        self.license_provider = license_provider or StaticLicense()
        self.config = config
        self.page_url = page_url
        self.query_string = query_string

        self._owns_session = session is None
        self._session = session
        self._views: Dict[type, Any] = {}

    @classmethod
    def from_config(cls, query: Optional[Mapping[str, Any]] = None, *, config=Config, **kwargs) -> "PageContext":
        """Context backed by the SQL settings store at config.SETTINGS_URL."""
        settings = SQLSettingsStore(config.SETTINGS_URL)
        return cls(
            query,
            settings=settings,
            license_provider=StoredLicense(settings),
            config=config,
            **kwargs,
        )

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"User-Agent": self.config.USER_AGENT})
        return self._session

    def new_client(self, descriptor: CallDescriptor) -> RetsAPIClient:
        """Fresh one-shot client wired to this page's collaborators."""
        return RetsAPIClient(
            descriptor,
            settings=self.settings,
            license_provider=self.license_provider,
            session=self.session,
            config=self.config,
        )

    def view(self, view_cls: Type[ViewT]) -> ViewT:
        """The page's single instance of view_cls, created on first use."""
        if view_cls not in self._views:
            logger.debug(f"Creating {view_cls.__name__} for page {self.page_url or '(none)'}")
            self._views[view_cls] = view_cls(self)
        return self._views[view_cls]

    def url_querystring(self, atts: Optional[Mapping[str, Any]], content: str) -> str:
        """Link to atts['page'] carrying this page's query string."""
        return url_querystring(atts, self.query_string, content)

    def close(self) -> None:
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
