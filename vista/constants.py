"""
Shared constants for the listing display engine.

Display messages are rendered verbatim into pages, so they are kept here as the
single source of truth for what a visitor sees when data is missing or an API
call fails.
"""

# =============================================================================
# Field Sentinels
# =============================================================================

# Generic error for a field whose handler failed
FIELD_ERROR = "Not available"

# Field value was null in the API record
FIELD_NONE = "None"

# Field name is not present in the record at all
FIELD_MISSING = "Field not found"

# data_field() called without a 'field' attribute
NO_FIELD_MSG = (
    'You must specify the listing field to display using the "field" shortcode attribute'
)


# =============================================================================
# Settings Keys (persisted key/value state)
# =============================================================================

ERR_TIME_SETTING = "vista_api_err_time"
LICENSE_KEY_SETTING = "vista_license_key"
LICENSE_VALID_SETTING = "vista_license_valid"
LICENSE_TIER_SETTING = "vista_license_tier"

# A failed call older than this no longer forces a cache-busting parameter
ERR_TIME_WINDOW_SECONDS = 86400


# =============================================================================
# API Response
# =============================================================================

TOTAL_COUNT_HEADER = "X-Total-Count"

# Query params owned by the pagination controller
PAGINATION_PARAMS = ("offset", "limit")

# Prefix added to every external query parameter name (both forms accepted)
PARAM_PREFIX = "vista-"


# =============================================================================
# Photos
# =============================================================================

PHOTO_SLOTS = (
    "first-photo",
    "second-photo",
    "third-photo",
    "fourth-photo",
    "fifth-photo",
    "sixth-photo",
    "seventh-photo",
    "eighth-photo",
    "ninth-photo",
    "tenth-photo",
)
