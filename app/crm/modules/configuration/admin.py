from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, url_for

from app.crm.constants import DATE_FORMATS
from app.crm.errors import FieldValidationFailed, PersistenceError
from app.crm.modules.configuration.service import save_general_settings, save_theme
from app.crm.modules.configuration.store import get_store

bp = Blueprint("customize", __name__)


@bp.get("/")
def index():
    return redirect(url_for("customize.general_get"))


# ---------- General settings ----------
@bp.get("/general")
def general_get():
    return render_template(
        "customize/general.html",
        active_tab="general",
        values=get_store().config.general.to_dict(),
        errors={},
        date_formats=DATE_FORMATS,
    )


@bp.post("/general")
def general_post():
    payload = {k: request.form.get(k) or "" for k in ("company_name", "currency", "date_format")}
    try:
        save_general_settings(get_store(), payload)
    except FieldValidationFailed as e:
        return (
            render_template(
                "customize/general.html",
                active_tab="general",
                values=payload,
                errors=e.as_dict(),
                date_formats=DATE_FORMATS,
            ),
            400,
        )
    except PersistenceError as e:
        flash(str(e), "danger")
        return (
            render_template(
                "customize/general.html",
                active_tab="general",
                values=payload,
                errors={},
                date_formats=DATE_FORMATS,
            ),
            503,
        )
    flash("General settings saved.", "success")
    return redirect(url_for("customize.general_get"))


# ---------- Theme ----------
@bp.get("/theme")
def theme_get():
    return render_template("customize/theme.html", active_tab="theme", values=get_store().config.theme.to_dict(), errors={})


@bp.post("/theme")
def theme_post():
    payload = {k: request.form.get(k) or "" for k in ("primary", "secondary", "sidebar")}
    try:
        save_theme(get_store(), payload)
    except FieldValidationFailed as e:
        return render_template("customize/theme.html", active_tab="theme", values=payload, errors=e.as_dict()), 400
    except PersistenceError as e:
        flash(str(e), "danger")
        return render_template("customize/theme.html", active_tab="theme", values=payload, errors={}), 503
    flash("Theme saved.", "success")
    return redirect(url_for("customize.theme_get"))
