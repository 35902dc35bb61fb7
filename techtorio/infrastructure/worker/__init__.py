"""Worker runtime and dispatch loop for the outbox."""

from techtorio.infrastructure.worker.config import DispatchConfig
from techtorio.infrastructure.worker.dispatcher import (
    fetch_pending_messages,
    process_message,
    process_pending_batch,
    run_dispatcher,
)

__all__ = [
    "DispatchConfig",
    "fetch_pending_messages",
    "process_message",
    "process_pending_batch",
    "run_dispatcher",
]
