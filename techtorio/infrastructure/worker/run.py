"""Entrypoint for the outbox dispatcher worker process."""

from __future__ import annotations

import logging
import os
import signal
import threading

from techtorio import create_app
from techtorio.infrastructure.worker.config import DispatchConfig
from techtorio.infrastructure.worker.dispatcher import run_dispatcher

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("WORKER_LOGLEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(os.environ.get("APP_ENV"))
    stop_event = threading.Event()

    def _shutdown(signum, _frame):
        logger.info("Received signal %s, stopping dispatcher", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    with app.app_context():
        run_dispatcher(DispatchConfig.from_env(), stop_event=stop_event)


if __name__ == "__main__":
    main()
