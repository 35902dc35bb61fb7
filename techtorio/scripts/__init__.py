"""Operational CLI commands."""

from techtorio.scripts.outbox_dispatch import outbox_dispatch_command
from techtorio.scripts.seed_admin import seed_admin_command
from techtorio.scripts.seed_categories import seed_categories_command


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(seed_categories_command)
    app.cli.add_command(outbox_dispatch_command)
    app.cli.add_command(seed_admin_command)
