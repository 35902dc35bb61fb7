"""Seed base roles and an admin user.

Usage:
    flask seed-admin --email admin@example.com --password secret123
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from techtorio.core.auth.models import ADMIN_ROLE, BUYER_ROLE, SELLER_ROLE, Role
from techtorio.core.auth.password import hash_password
from techtorio.core.users.models import User
from techtorio.extensions import db

BASE_ROLES = {
    ADMIN_ROLE: "Administrator",
    SELLER_ROLE: "Marketplace seller",
    BUYER_ROLE: "Marketplace buyer",
}


def seed_roles() -> dict[str, Role]:
    roles = {}
    for name, description in BASE_ROLES.items():
        role = Role.query.filter_by(name=name).first()
        if not role:
            role = Role(name=name, description=description)
            db.session.add(role)
        roles[name] = role
    db.session.commit()
    return roles


def seed_admin_user(email: str, password: str, first_name: str | None = None) -> User:
    roles = seed_roles()
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        user = User(
            email=email.strip().lower(),
            first_name=first_name or "Admin",
            password_hash=hash_password(password),
            email_confirmed=True,
        )
        db.session.add(user)
        db.session.flush()
    if roles[ADMIN_ROLE] not in user.roles:
        user.roles.append(roles[ADMIN_ROLE])
    db.session.commit()
    return user


@click.command("seed-admin")
@click.option("--email", required=True, help="Admin email")
@click.option("--password", required=True, help="Admin password")
@click.option("--first-name", default="Admin", help="Admin display name")
@with_appcontext
def seed_admin_command(email: str, password: str, first_name: str):
    user = seed_admin_user(email, password, first_name)
    click.echo(f"Seeded admin user {user.email} with roles {user.role_codes}")
