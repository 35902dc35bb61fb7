"""CLI command for running the outbox dispatcher inside the app.

Usage:
    flask outbox-dispatch --once     # process a single batch and exit
    flask outbox-dispatch            # loop until interrupted
"""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext


@click.command("outbox-dispatch")
@click.option("--once", is_flag=True, help="Process one batch and exit")
@click.option("--batch-size", type=int, help="Override OUTBOX_BATCH_SIZE")
@with_appcontext
def outbox_dispatch_command(once: bool, batch_size: int | None):
    """Dispatch pending outbox messages."""
    from techtorio.infrastructure.sms.senders import build_sms_sender
    from techtorio.infrastructure.worker.config import DispatchConfig
    from techtorio.infrastructure.worker.dispatcher import process_pending_batch, run_dispatcher
    from techtorio.infrastructure.worker.handlers import build_default_handlers

    config = DispatchConfig.from_env()
    if batch_size:
        config.batch_size = batch_size
    handlers = build_default_handlers(build_sms_sender(current_app.config))

    if once:
        processed = process_pending_batch(handlers, config)
        click.echo(f"Processed {processed} outbox message(s)")
        return

    try:
        run_dispatcher(config, handlers=handlers)
    except KeyboardInterrupt:
        click.echo("Dispatcher stopped")
