"""CLI command for seeding the default category tree.

Usage:
    flask seed-categories
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext


@click.command("seed-categories")
@with_appcontext
def seed_categories_command():
    """Insert any missing default categories (safe to re-run)."""
    from techtorio.domains.catalog.seed import seed_default_categories

    inserted = seed_default_categories()
    click.echo(f"Seeded categories: {inserted} inserted")
