import logging
from decimal import Decimal

from flask import Flask, render_template
from dotenv import load_dotenv

from app.crm.config import load_config
from app.crm.crm_api import init_api
from app.crm.db import init_db
from app.crm.errors import PersistenceError
from app.crm.modules.configuration.document import Configuration
from app.crm.routes import bp as routes_bp
from app.crm.modules.configuration.admin import bp as customize_bp
from app.crm.modules.configuration.store import get_store, init_store
from app.crm.modules.custom_fields.admin import bp as custom_fields_bp
from app.crm.modules.entities.admin import bp as entities_bp
from app.crm.modules.layout.admin import bp as layout_bp
from app.crm.modules.widgets.admin import bp as pages_bp
from app.crm.modules.widgets.registry import init_registry

logger = logging.getLogger(__name__)

_DATE_FORMAT_TO_STRFTIME = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}


def create_app(*, store=None, api_client=None, widget_registry=None) -> Flask:
    """
    Application factory. Tests pass their own store / API client / widget
    registry; otherwise the SQL-backed store and the HTTP client are built
    from configuration.
    """
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    init_store(app, store)
    init_api(app, api_client)
    init_registry(app, widget_registry)

    @app.context_processor
    def _inject_configuration() -> dict:
        # Sidebar and page chrome read the theme/company name on every render.
        # Error pages must still render when the store cannot be read, so fall back to defaults.
        try:
            config = get_store().config
        except PersistenceError as e:
            app.logger.error("Configuration unavailable while rendering: %s", e)
            config = Configuration()
        return {"crm_config": config}

    @app.template_filter("displaydate")
    def _displaydate_filter(value) -> str:
        if value in (None, ""):
            return "-"
        fmt = _DATE_FORMAT_TO_STRFTIME.get(get_store().config.general.date_format, "%Y-%m-%d")
        if hasattr(value, "strftime"):
            return value.strftime(fmt)
        from datetime import date

        try:
            return date.fromisoformat(str(value)[:10]).strftime(fmt)
        except ValueError:
            return str(value)

    @app.template_filter("money")
    def _money_filter(value) -> str:
        currency = get_store().config.general.currency
        try:
            amount = Decimal(str(value if value not in (None, "") else 0))
        except ArithmeticError:
            return str(value)
        return f"{amount:,.2f} {currency}"

    app.register_blueprint(routes_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(customize_bp, url_prefix="/customize")
    app.register_blueprint(custom_fields_bp, url_prefix="/customize")
    app.register_blueprint(layout_bp, url_prefix="/customize")
    app.register_blueprint(entities_bp)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500")
        return render_template("errors/500.html"), 500

    logger.info("create_app() complete; app ready to serve")
    return app
