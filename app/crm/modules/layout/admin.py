from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, session, url_for

from app.crm.constants import LAYOUT_PAGES
from app.crm.errors import PersistenceError, UnknownReference
from app.crm.modules.configuration.store import get_store
from app.crm.modules.layout.builder import ACTIVE, AVAILABLE, PageBuilder
from app.crm.modules.widgets.registry import get_registry

bp = Blueprint("layout", __name__)

_SESSION_KEY = "layout_drafts"


def _check_page(page_name: str) -> None:
    if page_name not in LAYOUT_PAGES:
        abort(404)


def _load_builder(page_name: str) -> PageBuilder:
    """Unsaved drafts live in the user's session until saved or reset."""
    keys = get_registry().keys()
    draft = (session.get(_SESSION_KEY) or {}).get(page_name)
    if draft:
        return PageBuilder.from_dict(draft, keys)
    return PageBuilder(page_name, get_store().config.layout_for(page_name), keys)


def _keep_draft(builder: PageBuilder) -> None:
    drafts = dict(session.get(_SESSION_KEY) or {})
    if builder.is_modified:
        drafts[builder.page_name] = builder.to_dict()
    else:
        drafts.pop(builder.page_name, None)
    session[_SESSION_KEY] = drafts


@bp.get("/layout")
def page_builder_index():
    return redirect(url_for("layout.page_builder", page_name=LAYOUT_PAGES[0]))


@bp.get("/layout/<page_name>")
def page_builder(page_name: str):
    _check_page(page_name)
    builder = _load_builder(page_name)
    registry = get_registry()
    return render_template(
        "customize/page_builder.html",
        active_tab="layout",
        builder=builder,
        pages=LAYOUT_PAGES,
        specs={spec.key: spec for spec in registry.specs()},
        busy=get_store().busy,
    )


@bp.post("/layout/<page_name>/move")
def page_builder_move(page_name: str):
    _check_page(page_name)
    builder = _load_builder(page_name)
    key = (request.form.get("widget") or "").strip()
    to_list = (request.form.get("to") or "").strip()
    raw_index = (request.form.get("index") or "").strip()
    if to_list not in (ACTIVE, AVAILABLE):
        flash("Unknown drop target.", "danger")
        return redirect(url_for("layout.page_builder", page_name=page_name))
    try:
        index = int(raw_index) if raw_index else None
        builder.move(key, to_list, index)
    except ValueError:
        flash("Position must be a number.", "danger")
    except UnknownReference as e:
        flash(str(e), "danger")
    _keep_draft(builder)
    return redirect(url_for("layout.page_builder", page_name=page_name))


@bp.post("/layout/<page_name>/save")
def page_builder_save(page_name: str):
    _check_page(page_name)
    builder = _load_builder(page_name)
    if not builder.is_modified:
        flash("No changes to save.", "info")
        return redirect(url_for("layout.page_builder", page_name=page_name))
    try:
        builder.save(get_store())
    except PersistenceError:
        flash("Error saving layout. Please try again.", "danger")
        return redirect(url_for("layout.page_builder", page_name=page_name))
    _keep_draft(builder)
    flash("Layout saved successfully!", "success")
    return redirect(url_for("layout.page_builder", page_name=page_name))


@bp.post("/layout/<page_name>/reset")
def page_builder_reset(page_name: str):
    _check_page(page_name)
    builder = _load_builder(page_name)
    if builder.reset(get_store().config.layout_for(page_name)):
        flash("Layout changes discarded.", "info")
    _keep_draft(builder)
    return redirect(url_for("layout.page_builder", page_name=page_name))
