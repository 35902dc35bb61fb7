"""Outbox dispatcher helpers and worker loop."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from techtorio.extensions import db
from techtorio.infrastructure.outbox.models import OutboxMessage
from techtorio.infrastructure.worker.config import DispatchConfig

logger = logging.getLogger(__name__)

Handler = Callable[[OutboxMessage], None]

SKIPPED_UNSUPPORTED = "Skipped: unsupported type"


def fetch_pending_messages(session, batch_size: int) -> List[OutboxMessage]:
    """Return up to batch_size unprocessed messages, oldest first."""
    return (
        session.query(OutboxMessage)
        .filter(OutboxMessage.processed.is_(False))
        .order_by(OutboxMessage.occurred_on, OutboxMessage.id)
        .limit(batch_size)
        .all()
    )


def _mark_processed(message: OutboxMessage, now: datetime) -> None:
    message.processed = True
    message.processed_on = now


def process_message(
    message: OutboxMessage,
    handlers: Dict[str, Handler],
    config: DispatchConfig,
    now: Optional[datetime] = None,
    session=None,
) -> None:
    """
    Apply the abandonment gates, then dispatch to the handler for the message type.
    Handler exceptions are recorded on the message and never propagate.

    The handler runs inside a savepoint and its writes are flushed there, so a
    database error raised by one message rolls back only that message's work.
    """
    now = now or datetime.utcnow()
    session = session or db.session
    message_type = (message.type or "").lower()

    if message.error and message.occurred_on < now - timedelta(seconds=config.abandon_after_seconds):
        logger.warning(
            "Abandoning outbox message %s (%s) older than %ss: %s",
            message.id,
            message.type,
            config.abandon_after_seconds,
            message.error,
        )
        _mark_processed(message, now)
        return

    if message_type == "sms" and (message.retry_count or 0) >= config.sms_max_retries:
        logger.warning("Giving up on SMS message %s after %s retries", message.id, message.retry_count)
        message.error = f"Failed after {message.retry_count} retries: {message.error}"
        _mark_processed(message, now)
        return

    handler = handlers.get(message_type)
    if handler is None:
        logger.warning("Skipping outbox message %s with unsupported type %s", message.id, message.type)
        message.error = SKIPPED_UNSUPPORTED
        _mark_processed(message, now)
        return

    try:
        with session.begin_nested():
            handler(message)
            session.flush()
    except Exception as exc:
        message.retry_count = (message.retry_count or 0) + 1
        message.error = str(exc)
        logger.error(
            "Outbox message %s (%s) failed on attempt %s: %s",
            message.id,
            message.type,
            message.retry_count,
            exc,
        )
        return

    _mark_processed(message, now)
    message.error = None


def process_pending_batch(
    handlers: Dict[str, Handler],
    config: DispatchConfig,
    session=None,
    now: Optional[datetime] = None,
) -> int:
    """
    Fetch pending messages, dispatch each, and commit once for the whole batch.
    Returns the number of messages examined.
    """
    session = session or db.session
    try:
        messages = fetch_pending_messages(session, batch_size=config.batch_size)
        if not messages:
            session.commit()
            return 0

        for message in messages:
            process_message(message, handlers, config, now=now, session=session)

        session.commit()
        return len(messages)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Database error while processing outbox batch")
        return 0
    except Exception:
        session.rollback()
        logger.exception("Unexpected error while processing outbox batch")
        return 0


def run_dispatcher(
    config: Optional[DispatchConfig] = None,
    handlers: Optional[Dict[str, Handler]] = None,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """
    Run the dispatcher loop until stop_event is set. Must run inside an app context.
    """
    cfg = config or DispatchConfig.from_env()
    stop = stop_event or threading.Event()
    if handlers is None:
        from flask import current_app

        from techtorio.infrastructure.sms.senders import build_sms_sender
        from techtorio.infrastructure.worker.handlers import build_default_handlers

        handlers = build_default_handlers(build_sms_sender(current_app.config))

    if not cfg.enabled:
        logger.info("Outbox dispatcher disabled (OUTBOX_ENABLED=false)")
        return

    logger.info(
        "Starting outbox dispatcher (batch_size=%s, interval=%ss, sms_max_retries=%s, abandon_after=%ss)",
        cfg.batch_size,
        cfg.sleep_seconds,
        cfg.sms_max_retries,
        cfg.abandon_after_seconds,
    )

    while not stop.is_set():
        process_pending_batch(handlers, cfg)
        # Release the scoped session between cycles so rows are re-read fresh.
        db.session.remove()
        stop.wait(cfg.sleep_seconds)

    logger.info("Outbox dispatcher stopped")
