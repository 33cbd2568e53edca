#!/usr/bin/env python3
"""
CLI for Vista Listings

Commands:
    fields  - Fetch one listing and print its display fields
    render  - Render a record template against a search
    total   - Print the total number of listings matching a search

Usage:
    vista fields 1005192
    vista fields 1005192 --json
    vista render card.html --query "cities=Houston&limit=5"
    vista render openhouse.html --kind openhouses
    vista total --query "minprice=300000"

Examples:
    # Use a specific license key instead of the stored one
    vista --license abc123 fields 1005192

    # Debug the request URL
    vista --log-level DEBUG total --query "cities=Houston, Dallas"
"""

import json
import sys
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

import click

from vista import __version__
from vista.config import Config
from vista.display.context import PageContext
from vista.display.multiple import ListingsView, OpenHousesView
from vista.display.single import SingleListingView
from vista.logging_config import setup_logging
from vista.services.license import StaticLicense, StoredLicense
from vista.services.settings_store import SQLSettingsStore

VIEW_KINDS = {
    "listings": ListingsView,
    "openhouses": OpenHousesView,
}


def parse_query(query: Optional[str]) -> Dict[str, Any]:
    """'a=1&b=2&b=3' -> {'a': '1', 'b': ['2', '3']}"""
    parsed = parse_qs(query or "", keep_blank_values=False)
    return {name: values[0] if len(values) == 1 else values for name, values in parsed.items()}


def make_page(query: Dict[str, Any], license_key: Optional[str], query_string: str = "") -> PageContext:
    settings = SQLSettingsStore(Config.SETTINGS_URL)
    license_provider = StaticLicense(license_key) if license_key is not None else StoredLicense(settings)
    return PageContext(
        query,
        settings=settings,
        license_provider=license_provider,
        page_url=Config.SITE_URL,
        query_string=query_string,
    )


@click.group()
@click.version_option(version=__version__, prog_name="vista")
@click.option("--license", "license_key", default=None, help="License key (default: stored key)")
@click.option("--log-level", default=None, help="Logging level (default: VISTA_LOG_LEVEL)")
@click.pass_context
def cli(ctx, license_key, log_level):
    """Vista Listings CLI - Query the Vista RETS proxy from the command line."""
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["license_key"] = license_key


@cli.command("fields")
@click.argument("listing_id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def fields(ctx, listing_id, output_json):
    """
    Fetch one listing and print its display fields.

    LISTING_ID: MLS ID of the listing
    """
    with make_page({"listing": listing_id}, ctx.obj["license_key"]) as page:
        view = page.view(SingleListingView)
        if view.error:
            click.secho(f"Error: {view.error}", fg="red")
            sys.exit(1)

        values = view.record.get_fields()
        if output_json:
            click.echo(json.dumps(values, indent=2, sort_keys=True))
            return

        width = max((len(name) for name in values), default=0)
        for name in sorted(values):
            click.echo(f"{click.style(name.ljust(width), fg='cyan')}  {values[name]}")


@cli.command("render")
@click.argument("template_file", type=click.File("r"))
@click.option("--query", "-q", default="", help="Search params as a query string")
@click.option("--kind", type=click.Choice(sorted(VIEW_KINDS)), default="listings",
              help="Record type to render")
@click.pass_context
def render(ctx, template_file, query, kind):
    """
    Render TEMPLATE_FILE once per matching record.

    TEMPLATE_FILE: Template with [fieldname] placeholders
    """
    template = template_file.read()
    with make_page(parse_query(query), ctx.obj["license_key"], query) as page:
        view = page.view(VIEW_KINDS[kind])
        click.echo(view.display_records(template))
        if view.error:
            sys.exit(1)


@cli.command("total")
@click.option("--query", "-q", default="", help="Search params as a query string")
@click.pass_context
def total(ctx, query):
    """Print the total number of listings matching the search."""
    with make_page(parse_query(query), ctx.obj["license_key"], query) as page:
        view = page.view(ListingsView)
        click.echo(view.total_count())
        if view.error:
            sys.exit(1)


if __name__ == "__main__":
    cli()
