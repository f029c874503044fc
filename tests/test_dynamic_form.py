from app.crm.modules.configuration.document import CustomFieldDefinition
from app.crm.modules.forms.dynamic_form import DynamicForm, FieldDescriptor, coerce_value, is_blank


def _defs():
    return (
        CustomFieldDefinition(id="1", entity="quote", name="vip", label="VIP", type="checkbox"),
        CustomFieldDefinition(id="2", entity="quote", name="seats", label="Seats", type="number", required=True),
        CustomFieldDefinition(id="3", entity="Quote", name="channel", label="Channel", type="dropdown", options=("Web", "Phone")),
        CustomFieldDefinition(id="4", entity="quote", name="empty_pick", label="Empty pick", type="dropdown"),
        CustomFieldDefinition(id="5", entity="quote", name="memo", label="Memo", type="textarea", required=True),
        CustomFieldDefinition(id="6", entity="customer", name="industry", label="Industry"),
    )


def _form(initial=None):
    standard = [FieldDescriptor("title", "Title", "text", required=True)]
    return DynamicForm("quote", standard, initial or {"title": "Deal"}, _defs())


def test_only_matching_entity_fields_are_included():
    form = _form()
    assert [f.name for f in form.custom_fields] == ["vip", "seats", "channel", "empty_pick", "memo"]
    assert form.field("industry") is None


def test_type_defaults_are_seeded():
    form = _form()
    assert form.values["vip"] is False
    assert form.values["seats"] == 0
    assert form.values["channel"] == "Web"
    assert form.values["empty_pick"] == ""
    assert form.values["memo"] == ""


def test_initial_values_are_not_overwritten():
    form = _form({"title": "Deal", "channel": "Phone", "seats": 4})
    assert form.values["channel"] == "Phone"
    assert form.values["seats"] == 4


def test_controls_follow_field_type():
    form = _form()
    assert {f.name: f.control for f in form.custom_fields} == {
        "vip": "checkbox",
        "seats": "number",
        "channel": "select",
        "empty_pick": "select",
        "memo": "textarea",
    }


def test_required_fields_block_submit_and_keep_draft():
    calls = []
    form = _form({"title": ""})
    assert form.submit(calls.append) is False
    assert calls == []
    assert form.errors == {"title": "Title is required", "seats": "Seats is required", "memo": "Memo is required"}


def test_required_number_left_at_zero_blocks_submit():
    calls = []
    form = _form({"title": "Deal", "memo": "x"})
    assert form.values["seats"] == 0
    assert form.submit(calls.append) is False
    assert calls == []
    assert form.errors == {"seats": "Seats is required"}

    form.change("seats", 2)
    assert form.submit(calls.append) is True
    assert calls[0]["seats"] == 2


def test_blank_values_by_field_type():
    assert is_blank(0, "number") is True
    assert is_blank(0.0, "number") is True
    assert is_blank(0) is False
    assert is_blank(3, "number") is False
    assert is_blank("  ") is True
    assert is_blank(None) is True
    assert is_blank(False, "checkbox") is True


def test_change_clears_error_and_submit_passes_merged_values():
    calls = []
    form = _form({"title": ""})
    form.validate()
    form.change("title", "Big deal")
    assert "title" not in form.errors
    form.change("memo", "call back")
    form.change("seats", 3)
    assert form.submit(calls.append) is True
    (values,) = calls
    assert values["title"] == "Big deal"
    assert values["memo"] == "call back"
    assert values["vip"] is False
    assert form.custom_values() == {"vip": False, "seats": 3, "channel": "Web", "empty_pick": "", "memo": "call back"}


def test_load_form_coerces_posted_values():
    form = _form()
    form.load_form({"title": "Deal", "vip": "on", "seats": "12", "memo": "x"})
    assert form.values["vip"] is True
    assert form.values["seats"] == 12
    form.load_form({"title": "Deal", "memo": "x"})
    assert form.values["vip"] is False


def test_coerce_number_accepts_decimals_and_blank():
    seats = FieldDescriptor("seats", "Seats", "number")
    assert coerce_value(seats, "2.5") == 2.5
    assert coerce_value(seats, "") == ""


def test_non_numeric_text_in_number_field_is_an_error():
    calls = []
    form = _form()
    form.load_form({"title": "Deal", "seats": "abc", "memo": "x"})
    assert form.values["seats"] == "abc"
    assert form.errors == {"seats": "Seats must be a number"}
    assert form.submit(calls.append) is False
    assert calls == []
    assert form.errors == {"seats": "Seats must be a number"}

    form.load_form({"title": "Deal", "seats": "7", "memo": "x"})
    assert form.errors == {}
    assert form.submit(calls.append) is True


def test_optional_number_may_be_left_blank():
    budget = FieldDescriptor("budget", "Budget", "number")
    form = DynamicForm("quote", [budget], {})
    form.load_form({"budget": ""})
    assert form.validate() is True
    assert coerce_value(budget, "1e3") == 1000.0
