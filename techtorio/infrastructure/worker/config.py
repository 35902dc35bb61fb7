"""Dispatcher configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class DispatchConfig:
    """Runtime knobs for the dispatcher loop."""

    enabled: bool = True
    interval_seconds: float = 5
    batch_size: int = 25
    sms_max_retries: int = 3
    abandon_after_seconds: int = 300

    @classmethod
    def from_env(cls) -> "DispatchConfig":
        """Build config from environment with sensible defaults."""
        return cls(
            enabled=os.environ.get("OUTBOX_ENABLED", "true").lower() in ("1", "true", "yes"),
            interval_seconds=float(os.environ.get("OUTBOX_INTERVAL_SECONDS", "5")),
            batch_size=int(os.environ.get("OUTBOX_BATCH_SIZE", "25")),
            sms_max_retries=int(os.environ.get("OUTBOX_SMS_MAX_RETRIES", "3")),
            abandon_after_seconds=int(os.environ.get("OUTBOX_ABANDON_AFTER_SECONDS", "300")),
        )

    @property
    def sleep_seconds(self) -> float:
        return max(1.0, float(self.interval_seconds))
