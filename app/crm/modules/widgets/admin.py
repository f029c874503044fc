from __future__ import annotations

from flask import Blueprint, abort, redirect, render_template, url_for

from app.crm.constants import LAYOUT_PAGES
from app.crm.crm_api import get_api
from app.crm.modules.configuration.store import get_store
from app.crm.modules.widgets.registry import get_registry
from app.crm.modules.widgets.renderer import render_page

bp = Blueprint("pages", __name__)


@bp.get("/")
def home():
    return redirect(url_for("pages.dashboard"))


@bp.get("/dashboard")
def dashboard():
    return page("dashboard")


@bp.get("/pages/<page_name>")
def page(page_name: str):
    if page_name not in LAYOUT_PAGES:
        abort(404)
    rendered = render_page(page_name, config=get_store().config, registry=get_registry(), api=get_api())
    return render_template("dashboard.html", page=rendered)
