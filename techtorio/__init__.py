"""TechTorio application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from techtorio.config import config_by_name
from techtorio.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the TechTorio Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
        template_folder=str(Path(__file__).parent / "templates"),
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = Path(db_uri.replace("sqlite:///", "", 1))
        if not db_path.is_absolute():
            db_path = project_root / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"

    init_extensions(app)
    _init_services(app)
    _register_models()
    _register_blueprints(app)
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from techtorio.scripts import register_commands

    register_commands(app)

    return app


def _init_services(app: Flask) -> None:
    from techtorio.domains.otp.services import init_otp_store

    init_otp_store(app)


def _register_models() -> None:
    """Import every model module so metadata is complete for create_all/migrations."""
    from techtorio.core.auth import models as auth_models  # noqa: F401
    from techtorio.core.devices import models as device_models  # noqa: F401
    from techtorio.core.notifications import models as notification_models  # noqa: F401
    from techtorio.core.users import models as user_models  # noqa: F401
    from techtorio.domains.catalog import models as catalog_models  # noqa: F401
    from techtorio.domains.wallets import models as wallet_models  # noqa: F401
    from techtorio.infrastructure.outbox import models as outbox_models  # noqa: F401
    from techtorio.infrastructure.ratelimit import models as ratelimit_models  # noqa: F401


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from techtorio.core.auth.controllers import auth_bp
    from techtorio.core.notifications.controllers import notifications_bp
    from techtorio.domains.catalog.controllers import catalog_bp
    from techtorio.domains.otp.controllers import otp_bp
    from techtorio.domains.wallets.controllers import admin_withdrawals_bp, wallets_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(catalog_bp, url_prefix="/api/categories")
    app.register_blueprint(otp_bp, url_prefix="/api/otp")
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")
    app.register_blueprint(wallets_bp, url_prefix="/api/wallets")
    app.register_blueprint(admin_withdrawals_bp, url_prefix="/api/admin/withdrawals")


def _register_error_handlers(app: Flask) -> None:
    """Basic JSON error responses."""
    from werkzeug.exceptions import HTTPException

    from techtorio.core.utils.validation import RequestValidationError

    @app.errorhandler(RequestValidationError)
    def _bad_request(exc: RequestValidationError):
        return exc.response

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500
