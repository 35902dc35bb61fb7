"""Product category tree."""

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship

from techtorio.core.users.models import TimestampMixin
from techtorio.extensions import db


class Category(db.Model, TimestampMixin):
    __tablename__ = "category"
    __table_args__ = (
        db.UniqueConstraint("name", "parent_id", name="uq_category_name_parent"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(128), nullable=False)
    description: Mapped[str] = mapped_column(db.String(512), default="")
    image_url: Mapped[str | None] = mapped_column(db.String(512))
    parent_id: Mapped[int | None] = mapped_column(db.ForeignKey("category.id"), index=True)
    is_active: Mapped[bool] = mapped_column(default=True)

    children = relationship(
        "Category",
        backref=db.backref("parent", remote_side="Category.id"),
        order_by="Category.id",
    )
