"""
Shared pytest configuration for vista tests.

Provides:
- StubConfig: deterministic settings (URL, site, timezone, page size)
- Fake HTTP session and proxy envelope factories
- PageContext factory wired to the fakes
"""

import sys
from pathlib import Path
from unittest.mock import Mock

# Make the `vista` package importable without installing it
project_dir = Path(__file__).parent.parent
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))

import pytest
import requests

from vista.config import Config
from vista.display.context import PageContext
from vista.services.license import StaticLicense
from vista.services.settings_store import MemorySettingsStore


class StubConfig(Config):
    API_URL = "https://proxy.test/rets"
    API_USER = "vista"
    API_PASSWORD = "vista"
    API_TIMEOUT = 30.0
    DEFAULT_LIMIT = 20
    SITE_URL = "https://homes.example.com"
    TIMEZONE = "UTC"
    TRIM_PARAM_TOKENS = False


def make_http_response(payload=None, status_code=200, json_error=False):
    """Mock requests.Response whose .json() returns payload (or raises)."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = payload
    return response


def make_envelope(body, total_count=None, **extra):
    headers = {}
    if total_count is not None:
        headers["X-Total-Count"] = [str(total_count)]
    envelope = {"headers": headers, "body": body}
    envelope.update(extra)
    return envelope


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def config():
    return StubConfig


@pytest.fixture
def settings():
    return MemorySettingsStore()


@pytest.fixture
def http_response():
    """Factory: http_response(payload, status_code=200, json_error=False)."""
    return make_http_response


@pytest.fixture
def envelope():
    """Factory: envelope(body, total_count=None, **extra) -> proxy envelope dict."""
    return make_envelope


@pytest.fixture
def session():
    """Fake requests.Session; set session.post.return_value per test."""
    fake = Mock(spec=requests.Session)
    fake.post.return_value = make_http_response(make_envelope({}))
    return fake


@pytest.fixture
def page(session, settings, config):
    """Factory: page(query, payload=None) -> PageContext using the fake session."""

    def _page(query=None, payload=None, **kwargs):
        if payload is not None:
            session.post.return_value = make_http_response(payload)
        return PageContext(
            query or {},
            settings=settings,
            license_provider=StaticLicense("test-key"),
            session=session,
            config=config,
            page_url=kwargs.pop("page_url", "https://homes.example.com/listings/"),
            **kwargs,
        )

    return _page


@pytest.fixture
def sample_listing():
    """Listing record as returned by the proxy for endpoint=property."""
    return {
        "mlsId": 1005192,
        "listPrice": 300000,
        "listDate": "2023-12-01T10:00:00Z",
        "remarks": "Charming bungalow",
        "privateRemarks": None,
        "property": {
            "area": 1500,
            "bedrooms": 3,
            "bathsFull": 2,
            "bathsHalf": 1,
            "style": "Traditional",
            "parking": {"leased": None, "spaces": 2, "description": "Garage"},
            "rooms": [
                {"typeText": "Kitchen", "level": "1"},
                {"typeText": "Den", "level": "2"},
            ],
        },
        "address": {
            "streetNumberText": "123",
            "streetName": "Main St",
            "unit": None,
            "city": "Houston",
            "state": "TX",
            "postalCode": "77002",
        },
        "office": {
            "name": "Acme Realty",
            "servingName": "Acme",
            "brokerid": "ACM1",
            "contact": {"email": "info@acme.test", "office": "555-0100", "cell": None},
        },
        "agent": {
            "firstName": "Jane",
            "lastName": "Doe",
            "contact": {"email": "jane@acme.test", "office": "555-0101"},
        },
        "mls": {"status": "Active", "daysOnMarket": 12},
        "association": {"fee": 250, "name": "Main St HOA"},
        "school": {"district": "Houston ISD", "elementarySchool": "Lincoln"},
        "photos": [
            "https://cdn.test/1.jpg",
            "https://cdn.test/2.jpg",
            "http://cdn.test/3.jpg",
        ],
        "virtualTourUrl": "https://tours.test/1005192",
        "modified": "2024-01-05T15:07:09Z",
    }
