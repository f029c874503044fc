from __future__ import annotations

import logging

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for

from app.crm.crm_api import get_api
from app.crm.errors import CrmApiError
from app.crm.modules.configuration.store import get_store
from app.crm.modules.entities.service import (
    ENTITY_COLLECTIONS,
    build_quote_lines,
    build_quote_payload,
    custom_values_of,
    new_quote_defaults,
    pick,
    quote_standard_fields,
    quote_total,
)
from app.crm.modules.forms.dynamic_form import DynamicForm

logger = logging.getLogger(__name__)

bp = Blueprint("entities", __name__)

_COLLECTION_RULE = "any(" + ", ".join(f'"{slug}"' for slug in ENTITY_COLLECTIONS) + ")"


def _api_failure(collection_label: str, err: CrmApiError):
    current_app.logger.warning("CRM API unavailable for %s: %s", collection_label, err)
    return render_template("entities/unavailable.html", label=collection_label, error=str(err)), 502


# ---------- List ----------
@bp.get(f"/<{_COLLECTION_RULE}:collection>")
def entity_list(collection: str):
    coll = ENTITY_COLLECTIONS[collection]
    q = (request.args.get("q") or "").strip().lower()
    try:
        records = get_api().list(collection)
    except CrmApiError as e:
        return _api_failure(coll.label, e)

    if q:
        records = [r for r in records if any(q in str(v).lower() for v in r.values() if not isinstance(v, (dict, list)))]

    rows = [
        {"id": pick(r, "id"), "cells": [pick(r, *keys) for _, keys in coll.columns]}
        for r in records
    ]
    return render_template("entities/list.html", collection=coll, rows=rows, q=q)


# ---------- Detail ----------
@bp.get(f"/<{_COLLECTION_RULE}:collection>/<record_id>")
def entity_detail(collection: str, record_id: str):
    coll = ENTITY_COLLECTIONS[collection]
    try:
        record = get_api().get(collection, record_id)
    except CrmApiError as e:
        if e.status_code == 404:
            abort(404)
        return _api_failure(coll.label, e)
    if not record:
        abort(404)

    custom_fields = []
    if coll.entity_type:
        values = custom_values_of(record)
        custom_fields = [(d, values.get(d.name)) for d in get_store().config.custom_fields_for(coll.entity_type)]
    standard = [(k, v) for k, v in record.items() if k not in ("customFields", "items")]
    return render_template(
        "entities/detail.html",
        collection=coll,
        record=record,
        standard=standard,
        items=record.get("items") if isinstance(record.get("items"), list) else [],
        custom_fields=custom_fields,
    )


# ---------- Quote create ----------
def _quote_form(customers: list[dict], initial: dict | None = None) -> DynamicForm:
    return DynamicForm(
        "quote",
        quote_standard_fields(customers),
        initial if initial is not None else new_quote_defaults(),
        get_store().config.custom_fields,
    )


@bp.get("/quotes/new")
def quote_new_get():
    api = get_api()
    try:
        customers = api.get_customers()
        products = api.get_products()
    except CrmApiError as e:
        return _api_failure("Quotes", e)
    return render_template("quotes/new.html", form=_quote_form(customers), products=products, lines=[], total=0)


@bp.post("/quotes/new")
def quote_new_post():
    api = get_api()
    try:
        customers = api.get_customers()
        products = api.get_products()
    except CrmApiError as e:
        return _api_failure("Quotes", e)

    form = _quote_form(customers)
    form.load_form(request.form)
    lines, line_errors = build_quote_lines(
        request.form.getlist("item_product"),
        request.form.getlist("item_quantity"),
        products,
    )

    created: dict = {}

    def _submit(values: dict) -> None:
        payload = build_quote_payload(values, form.custom_values(), lines)
        created.update(api.create_quote(payload) or {"id": None})

    for msg in line_errors:
        flash(msg, "danger")
    if not lines and not line_errors:
        flash("Add at least one item to the quote.", "danger")

    if line_errors or not lines:
        form.validate()
    else:
        try:
            if form.submit(_submit):
                logger.info("Quote created id=%s total=%s", created.get("id"), quote_total(lines))
                flash("Quote created.", "success")
                if created.get("id") is not None:
                    return redirect(url_for("entities.entity_detail", collection="quotes", record_id=created["id"]))
                return redirect(url_for("entities.entity_list", collection="quotes"))
        except CrmApiError as e:
            current_app.logger.warning("Quote create failed: %s", e)
            flash("Failed to create quote. Please try again.", "danger")

    return (
        render_template("quotes/new.html", form=form, products=products, lines=lines, total=quote_total(lines)),
        400,
    )
