"""Tests for field schema resolution and table column construction."""

import pytest

from recordview.models.field_descriptor import FieldType, FormPurpose
from recordview.models.table_view import ROW_NUMBER_FIELD
from recordview.services.schema_resolver import build_table_columns, resolve_field_type, resolve_fields


@pytest.fixture
def raw_columns():
    """Column configuration with mixed key casing and unordered entries."""
    return [
        {"FieldName": "Phone", "Label": "Phone", "Type": "phone", "Order": 2, "sortable": True},
        {"fieldName": "Name", "label": "Account Name", "type": "text", "order": 1, "isLink": True},
        {"fieldName": "Industry", "label": "Industry", "type": "picklist", "order": 2,
         "options": [{"value": "Energy", "label": "Energy"}, {"value": "Retail"}]},
        {"fieldName": "OwnerId", "label": "Owner", "order": 4, "IsExternalLookup": True,
         "LookupObjectApiName": "User"},
    ]


def test_sorted_by_order_then_field_name(raw_columns):
    """Test that descriptors are sorted by order, ties broken by field name."""
    descriptors = resolve_fields(raw_columns, FormPurpose.TABLE)

    assert [d.field_name for d in descriptors] == ["Name", "Industry", "Phone", "OwnerId"]


def test_resolution_is_idempotent(raw_columns):
    """Test that the same input yields identical output."""
    first = resolve_fields(raw_columns, FormPurpose.EDIT)
    second = resolve_fields(list(reversed(raw_columns)), FormPurpose.EDIT)

    assert first == resolve_fields(raw_columns, FormPurpose.EDIT)
    assert [d.field_name for d in first] == [d.field_name for d in second]


def test_descriptor_attributes(raw_columns):
    """Test normalization of types, flags, options and lookup targets."""
    descriptors = {d.field_name: d for d in resolve_fields(raw_columns, FormPurpose.TABLE)}

    assert descriptors["Name"].is_link is True
    assert descriptors["Phone"].type == FieldType.PHONE
    assert descriptors["Phone"].sortable is True
    assert descriptors["Phone"].input_type == "tel"

    industry = descriptors["Industry"]
    assert industry.type == FieldType.PICKLIST
    assert [(o.value, o.label) for o in industry.picklist_options] == [
        ("Energy", "Energy"),
        ("Retail", "Retail"),
    ]

    owner = descriptors["OwnerId"]
    assert owner.type == FieldType.LOOKUP_EXTERNAL
    assert owner.is_external_lookup is True
    assert owner.lookup_target_type == "User"
    assert owner.picklist_options == ()


def test_link_flag_only_applies_to_tables(raw_columns):
    """Test that link columns never carry over into forms."""
    descriptors = resolve_fields(raw_columns, FormPurpose.EDIT)

    assert not any(d.is_link for d in descriptors)


@pytest.mark.parametrize(
    "raw_type, expected",
    [
        (None, FieldType.TEXT),
        ("", FieldType.TEXT),
        ("rich-widget", FieldType.TEXT),
        ("EMAIL", FieldType.EMAIL),
        ("tel", FieldType.PHONE),
        ("currency", FieldType.NUMBER),
        ("checkbox", FieldType.BOOLEAN),
        ("date", FieldType.DATE),
    ],
)
def test_resolve_field_type(raw_type, expected):
    """Test the type mapping, with unknown types defaulting to text."""
    assert resolve_field_type(raw_type) == expected


def test_picklist_without_options_is_not_an_error():
    """Test that a picklist with no options resolves with an empty option set."""
    descriptors = resolve_fields([{"fieldName": "Stage", "type": "picklist"}], FormPurpose.EDIT)

    assert descriptors[0].type == FieldType.PICKLIST
    assert descriptors[0].picklist_options == ()
    assert descriptors[0].is_picklist is False


def test_options_dropped_for_non_picklist():
    """Test that options on a non-picklist field are discarded."""
    descriptors = resolve_fields(
        [{"fieldName": "Name", "type": "text", "options": [{"value": "x"}]}], FormPurpose.EDIT
    )

    assert descriptors[0].picklist_options == ()


def test_blank_and_duplicate_field_names_are_dropped():
    """Test that field names stay unique and blank names are skipped."""
    descriptors = resolve_fields(
        [
            {"fieldName": "Name", "label": "First", "order": 1},
            {"fieldName": "  ", "label": "Blank"},
            {"fieldName": "Name", "label": "Second", "order": 5},
        ],
        FormPurpose.EDIT,
    )

    assert [(d.field_name, d.label) for d in descriptors] == [("Name", "First")]


def test_missing_order_uses_position_and_label_defaults_to_field_name():
    """Test defaults for unordered, unlabeled entries."""
    descriptors = resolve_fields(
        [{"fieldName": "B"}, {"fieldName": "A", "order": "not-a-number"}], FormPurpose.CREATE
    )

    assert [(d.field_name, d.order, d.label) for d in descriptors] == [("B", 1, "B"), ("A", 2, "A")]


def test_flags_require_explicit_true():
    """Test that only an explicit true enables a flag."""
    descriptors = resolve_fields(
        [{"fieldName": "Name", "required": "yes", "sortable": "true"}], FormPurpose.EDIT
    )

    assert descriptors[0].required is False
    assert descriptors[0].sortable is True


def test_no_configured_fields_returns_empty():
    """Test that an object type without configuration resolves to nothing."""
    assert resolve_fields([], FormPurpose.TABLE, "Account") == []
    assert resolve_fields(None, FormPurpose.TABLE, "Account") == []


def test_build_table_columns(raw_columns):
    """Test the row number column, link column and row action column."""
    columns = build_table_columns(resolve_fields(raw_columns, FormPurpose.TABLE))

    row_number = columns[0]
    assert row_number.field_name == ROW_NUMBER_FIELD
    assert row_number.label == "#"
    assert row_number.sortable is False
    assert row_number.alignment == "right"

    name = columns[1]
    assert name.type == "button"
    assert name.action_name == "viewRecord"
    assert name.editable is False

    industry = columns[2]
    assert industry.type == "picklist"
    assert len(industry.options) == 2

    actions = columns[-1]
    assert actions.type == "action"
    assert [a.name for a in actions.row_actions] == ["edit", "delete"]
    assert all(not c.editable for c in columns)


def test_scalar_text_attributes_are_coerced():
    """Test that non-string labels, types and lookup targets do not drop the field."""
    descriptors = resolve_fields(
        [
            {"fieldName": "Amount", "label": 5, "type": "number", "order": 1},
            {"fieldName": "OwnerId", "label": ["Owner"], "isExternalLookup": True,
             "lookupObjectApiName": 7, "order": 2},
        ],
        FormPurpose.EDIT,
    )

    assert [(d.field_name, d.label, d.type) for d in descriptors] == [
        ("Amount", "5", FieldType.NUMBER),
        ("OwnerId", "OwnerId", FieldType.LOOKUP_EXTERNAL),
    ]
    assert descriptors[1].lookup_target_type == "7"
