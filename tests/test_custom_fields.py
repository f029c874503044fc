import pytest

from app.crm.errors import FieldNotFound, FieldValidationFailed, PersistenceError
from app.crm.modules.configuration.document import CustomFieldDefinition
from app.crm.modules.configuration.store import get_store
from app.crm.modules.custom_fields.editor import ADDING, CLOSED, EDITING, FieldEditor
from app.crm.modules.custom_fields.service import (
    FieldDraft,
    create_custom_field,
    delete_custom_field,
    format_options,
    list_custom_fields,
    parse_options,
    update_custom_field,
    validate_field_draft,
)


def _draft(**kw):
    base = {"entity": "customer", "name": "customer_industry", "label": "Industry", "type": "text"}
    base.update(kw)
    return FieldDraft(**base)


def _fields(errors):
    return [e.field for e in errors]


# ---------- Validation ----------

@pytest.mark.parametrize("field_type", ["text", "textarea", "number", "date", "checkbox"])
@pytest.mark.parametrize("options", ["", "A, B"])
def test_options_never_matter_for_non_dropdown(field_type, options):
    assert validate_field_draft(_draft(type=field_type, options=options)) == []


@pytest.mark.parametrize("options", ["", "   ", ", ,"])
def test_dropdown_without_options_has_exactly_one_options_error(options):
    errs = validate_field_draft(_draft(type="dropdown", options=options))
    assert _fields(errs) == ["options"]
    assert errs[0].message == "Options are required for dropdown fields"


@pytest.mark.parametrize(
    "name,ok",
    [("customer_industry", True), ("Field2", True), ("customer industry", False), ("custom-field", False)],
)
def test_name_pattern(name, ok):
    errs = validate_field_draft(_draft(name=name))
    assert (errs == []) is ok
    if not ok:
        assert errs[0].message == "Field name can only contain letters, numbers, and underscores"


def test_all_problems_reported_together():
    errs = validate_field_draft(FieldDraft(entity="", name="", label="", type="dropdown"))
    assert _fields(errs) == ["entity", "name", "label", "options"]


def test_unknown_entity_and_type_rejected():
    errs = validate_field_draft(_draft(entity="spaceship", type="rating"))
    assert _fields(errs) == ["entity", "type"]


def test_duplicate_name_is_scoped_to_entity():
    existing = (CustomFieldDefinition(id="a1", entity="customer", name="tier", label="Tier"),)
    assert _fields(validate_field_draft(_draft(name="tier"), existing=existing)) == ["name"]
    assert validate_field_draft(_draft(entity="quote", name="tier"), existing=existing) == []
    # Editing the same field keeps its own name.
    assert validate_field_draft(_draft(name="tier"), existing=existing, editing_id="a1") == []


def test_options_parsing_trims_and_drops_blanks():
    assert parse_options(" A, B,, C ,") == ("A", "B", "C")
    assert parse_options(None) == ()
    assert format_options(("A", "B", "C")) == "A, B, C"


def test_non_dropdown_definition_drops_options():
    assert _draft(type="text", options="A, B").to_definition().options == ()


# ---------- Service over the store ----------

def test_create_then_reopen_presents_same_options(memory_store):
    memory_store.load()
    created = create_custom_field(memory_store, _draft(name="tier", type="dropdown", options="A, B, C"))
    assert created.id
    assert created.options == ("A", "B", "C")

    editor = FieldEditor()
    editor.open_edit(memory_store.config.find_custom_field(created.id))
    assert editor.draft.options == "A, B, C"


def test_list_filter_is_case_insensitive(memory_store):
    memory_store.load()
    create_custom_field(memory_store, _draft(entity="customer", name="industry"))
    create_custom_field(memory_store, _draft(entity="quote", name="priority"))
    create_custom_field(memory_store, _draft(entity="quote", name="channel"))

    quote_fields = list_custom_fields(memory_store, "QUOTE")
    assert [f.name for f in quote_fields] == ["priority", "channel"]
    assert len(list_custom_fields(memory_store, "all")) == 3
    assert len(list_custom_fields(memory_store, None)) == 3


def test_create_invalid_draft_never_reaches_store(memory_store):
    memory_store.load()
    with pytest.raises(FieldValidationFailed):
        create_custom_field(memory_store, _draft(name="bad name"))
    assert memory_store.config.custom_fields == ()


def test_update_and_delete(memory_store):
    memory_store.load()
    created = create_custom_field(memory_store, _draft(name="industry"))
    updated = update_custom_field(memory_store, created.id, _draft(name="industry", label="Sector", required=True))
    assert updated.id == created.id
    assert updated.label == "Sector"
    assert updated.required is True

    deleted = delete_custom_field(memory_store, created.id)
    assert deleted.label == "Sector"
    assert memory_store.config.custom_fields == ()
    with pytest.raises(FieldNotFound):
        delete_custom_field(memory_store, created.id)


def test_persistence_failure_surfaces_as_error(memory_store):
    memory_store.load()
    memory_store.close()
    with pytest.raises(PersistenceError):
        create_custom_field(memory_store, _draft())


# ---------- Editor panel ----------

def test_editor_opens_one_form_at_a_time():
    editor = FieldEditor()
    assert editor.mode == CLOSED
    editor.open_add()
    assert editor.show_add_form and editor.mode == ADDING

    defn = CustomFieldDefinition(id="f1", entity="quote", name="priority", label="Priority")
    editor.open_edit(defn)
    assert editor.mode == EDITING
    assert not editor.show_add_form
    assert editor.is_editing("f1")
    assert not editor.is_editing("f2")

    editor.cancel()
    assert not editor.is_open
    assert editor.draft == FieldDraft()


def test_editor_change_clears_that_fields_error():
    editor = FieldEditor()
    editor.open_add()
    editor.fail(validate_field_draft(editor.draft))
    assert "name" in editor.errors and "label" in editor.errors
    editor.change("name", "industry")
    assert "name" not in editor.errors
    assert "label" in editor.errors
    with pytest.raises(KeyError):
        editor.change("colour", "red")


# ---------- HTTP ----------

def test_custom_fields_page_lists_and_filters(client, app):
    store = get_store(app)
    store.add_custom_field(CustomFieldDefinition(id=None, entity="customer", name="industry", label="Industry"))
    store.add_custom_field(CustomFieldDefinition(id=None, entity="quote", name="priority", label="Priority"))

    r = client.get("/customize/fields")
    assert r.status_code == 200
    assert b"Industry" in r.data and b"Priority" in r.data

    r = client.get("/customize/fields?entity=quote")
    assert b"Priority" in r.data
    assert b"Industry" not in r.data


def test_empty_state_message(client):
    r = client.get("/customize/fields")
    assert b"No custom fields have been created yet." in r.data


def test_create_field_over_http(client, app):
    r = client.post(
        "/customize/fields/new",
        data={"entity": "customer", "name": "tier", "label": "Tier", "type": "dropdown", "options": "Gold, Silver", "required": "on"},
        follow_redirects=False,
    )
    assert r.status_code == 302
    (field,) = get_store(app).config.custom_fields
    assert field.required is True
    assert field.options == ("Gold", "Silver")


def test_create_field_validation_errors_rerender_form(client, app):
    r = client.post("/customize/fields/new", data={"entity": "customer", "name": "has space", "label": "", "type": "text"})
    assert r.status_code == 400
    assert b"Field name can only contain letters, numbers, and underscores" in r.data
    assert b"Display label is required" in r.data
    assert b'value="has space"' in r.data
    assert get_store(app).config.custom_fields == ()


def test_edit_field_over_http(client, app):
    store = get_store(app)
    store.add_custom_field(CustomFieldDefinition(id=None, entity="customer", name="industry", label="Industry"))
    field_id = store.config.custom_fields[0].id

    r = client.get(f"/customize/fields?edit={field_id}")
    assert r.status_code == 200
    assert b"Update Field" in r.data

    r = client.post(
        f"/customize/fields/{field_id}/edit",
        data={"entity": "customer", "name": "industry", "label": "Sector", "type": "text"},
    )
    assert r.status_code == 302
    assert store.config.find_custom_field(field_id).label == "Sector"


def test_edit_unknown_field_is_404(client):
    r = client.post("/customize/fields/nope/edit", data={"entity": "customer", "name": "x", "label": "X", "type": "text"})
    assert r.status_code == 404


def test_delete_requires_confirmation(client, app):
    store = get_store(app)
    store.add_custom_field(CustomFieldDefinition(id=None, entity="customer", name="industry", label="Industry"))
    field_id = store.config.custom_fields[0].id

    r = client.get(f"/customize/fields/{field_id}/delete")
    assert r.status_code == 200
    assert b"This action cannot be undone" in r.data

    r = client.post(f"/customize/fields/{field_id}/delete", data={})
    assert r.status_code == 302
    assert store.config.find_custom_field(field_id) is not None

    r = client.post(f"/customize/fields/{field_id}/delete", data={"confirm": "yes"})
    assert r.status_code == 302
    assert store.config.find_custom_field(field_id) is None
