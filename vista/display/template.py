"""
Placeholder substitution for record templates.

A template is plain HTML with [fieldname] tokens. Each token is replaced by
the record's value for that field. Malformed bracket sequences are not
repaired; a second '[' before the closing ']' is reported inline so the page
author can see it.
"""

import html
from typing import Any, Mapping, Optional, Protocol

from markupsafe import escape

from vista.utils.sanitize import filter_query_string

NO_PAGE_PARAM = "<p>ERROR: 'Page' shortcode attribute must be set.</p>"


class FieldSource(Protocol):
    def get_field(self, name: str) -> str:
        ...


def replace_placeholders(template: str, record: FieldSource) -> str:
    """
    Replace every [fieldname] in template with record.get_field(fieldname).

    Examples:
        "<b>[listPrice]</b>"  -> "<b>300,000</b>"
        "a [b [c] d"          -> "a <value of 'b '>ERROR: Extra [ before c d"
    """
    result = []
    for token in html.unescape(template).split(']'):
        if '[' not in token:
            result.append(token)
            continue
        parts = token.split('[')
        result.append(parts[0])
        result.append(record.get_field(parts[1]))
        if len(parts) > 2:
            result.append(f"ERROR: Extra [ before {parts[2]}")
    return ''.join(result)


def fields_to_spans(template: str) -> str:
    """
    Replace every [fieldname] with an empty span the map script fills in.

    Example:
        "<b>[address]</b>"  -> "<b><span class='vsta-map-field' id='vsta-map-info-address'></span></b>"
    """
    result = []
    for token in html.unescape(template).split(']'):
        if '[' not in token:
            result.append(token)
            continue
        parts = token.split('[')
        result.append(parts[0])
        result.append(f"<span class='vsta-map-field' id='vsta-map-info-{escape(parts[1])}'></span>")
    return ''.join(result)


def url_querystring(atts: Optional[Mapping[str, Any]], query_string: Optional[str], content: str) -> str:
    """
    Link to another page carrying the current query string.

    Only [A-Za-z0-9 ,&=?%+] survive from the query string.
    """
    if not isinstance(atts, Mapping) or not atts.get('page'):
        return NO_PAGE_PARAM
    validated = filter_query_string(query_string)
    query = f"?{validated}" if validated else ""
    return f"<a href='{atts['page']}{query}'>{content}</a>"
