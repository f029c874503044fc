from __future__ import annotations

from flask import Blueprint, abort, flash, redirect, render_template, request, url_for

from app.crm.constants import ENTITY_TYPES, FIELD_TYPES
from app.crm.errors import FieldNotFound, FieldValidationFailed, PersistenceError
from app.crm.modules.configuration.store import get_store
from app.crm.modules.custom_fields.editor import FieldEditor
from app.crm.modules.custom_fields.service import (
    FieldDraft,
    create_custom_field,
    delete_custom_field,
    get_custom_field,
    list_custom_fields,
    update_custom_field,
)

bp = Blueprint("custom_fields", __name__)

DELETE_WARNING = (
    "Are you sure you want to delete this field? This action cannot be undone "
    "and may result in data loss."
)


def _entity_filter() -> str:
    return (request.args.get("entity") or request.form.get("entity_filter") or "all").strip().lower() or "all"


def _render(editor: FieldEditor, status: int = 200):
    store = get_store()
    selected = _entity_filter()
    return (
        render_template(
            "customize/custom_fields.html",
            active_tab="fields",
            fields=list_custom_fields(store, selected),
            editor=editor,
            selected_entity=selected,
            entity_types=ENTITY_TYPES,
            field_types=FIELD_TYPES,
            busy=store.busy,
        ),
        status,
    )


# ---------- List (+ add/edit panel) ----------
@bp.get("/fields")
def custom_fields_list():
    editor = FieldEditor()
    edit_id = (request.args.get("edit") or "").strip()
    if edit_id:
        try:
            editor.open_edit(get_custom_field(get_store(), edit_id))
        except FieldNotFound:
            flash("That custom field no longer exists.", "warning")
    elif request.args.get("mode") == "add":
        editor.open_add()
    return _render(editor)


# ---------- Create ----------
@bp.post("/fields/new")
def custom_fields_create():
    editor = FieldEditor()
    editor.open_add()
    editor.draft = FieldDraft.from_form(request.form)
    try:
        definition = create_custom_field(get_store(), editor.draft)
    except FieldValidationFailed as e:
        editor.fail(e.errors)
        return _render(editor, 400)
    except PersistenceError as e:
        flash(str(e), "danger")
        return _render(editor, 503)
    flash(f"Custom field '{definition.label}' added.", "success")
    return redirect(url_for("custom_fields.custom_fields_list", entity=_entity_filter()))


# ---------- Update ----------
@bp.post("/fields/<field_id>/edit")
def custom_fields_update(field_id: str):
    store = get_store()
    try:
        existing = get_custom_field(store, field_id)
    except FieldNotFound:
        abort(404)
    editor = FieldEditor()
    editor.open_edit(existing)
    editor.draft = FieldDraft.from_form(request.form)
    try:
        definition = update_custom_field(store, field_id, editor.draft)
    except FieldValidationFailed as e:
        editor.fail(e.errors)
        return _render(editor, 400)
    except FieldNotFound:
        abort(404)
    except PersistenceError as e:
        flash(str(e), "danger")
        return _render(editor, 503)
    flash(f"Custom field '{definition.label}' updated.", "success")
    return redirect(url_for("custom_fields.custom_fields_list", entity=_entity_filter()))


# ---------- Delete (confirm first) ----------
@bp.get("/fields/<field_id>/delete")
def custom_fields_delete_confirm(field_id: str):
    try:
        definition = get_custom_field(get_store(), field_id)
    except FieldNotFound:
        abort(404)
    return render_template(
        "customize/custom_field_delete.html",
        active_tab="fields",
        field=definition,
        warning=DELETE_WARNING,
    )


@bp.post("/fields/<field_id>/delete")
def custom_fields_delete(field_id: str):
    if (request.form.get("confirm") or "").strip().lower() != "yes":
        flash("Deletion not confirmed.", "warning")
        return redirect(url_for("custom_fields.custom_fields_delete_confirm", field_id=field_id))
    try:
        definition = delete_custom_field(get_store(), field_id)
    except FieldNotFound:
        abort(404)
    except PersistenceError as e:
        flash(str(e), "danger")
        return redirect(url_for("custom_fields.custom_fields_delete_confirm", field_id=field_id))
    flash(f"Custom field '{definition.label}' deleted.", "success")
    return redirect(url_for("custom_fields.custom_fields_list"))
