"""Authentication and role models."""

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column

from techtorio.extensions import db

ADMIN_ROLE = "admin"
SELLER_ROLE = "seller"
BUYER_ROLE = "buyer"


class Role(db.Model):
    __tablename__ = "role"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(64), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(db.String(255), default="")


class UserRole(db.Model):
    __tablename__ = "user_role"

    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), primary_key=True)
    role_id: Mapped[int] = mapped_column(db.ForeignKey("role.id"), primary_key=True)
