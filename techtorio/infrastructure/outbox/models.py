"""Transactional outbox message model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from techtorio.extensions import db


class OutboxMessage(db.Model):
    __tablename__ = "outbox_message"
    __table_args__ = (
        db.Index("ix_outbox_message_processed_occurred_on", "processed", "occurred_on"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[str] = mapped_column(db.String(128), nullable=False, index=True)
    # Serialized JSON document; kept as text so retries always see the original bytes.
    payload: Mapped[str] = mapped_column(db.Text, nullable=False, default="{}")
    occurred_on: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    processed: Mapped[bool] = mapped_column(default=False, nullable=False)
    processed_on: Mapped[datetime | None] = mapped_column(nullable=True)
    error: Mapped[str | None] = mapped_column(db.Text)
    retry_count: Mapped[int] = mapped_column(default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<OutboxMessage id={self.id} type={self.type} processed={self.processed}>"
