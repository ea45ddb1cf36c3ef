"""
Test error collection and message rendering with and without a locale.
"""

import json

import pytest

from starrecord import Errors, Locale, Model

from sample_models import Person, Widget


def test_errors_collection_semantics():
    errors = Errors()
    errors.add("email", "not_unique").add("email", "validation_failed", rule="email")
    errors["name"] = "required_field_missing"

    assert len(errors) == 3
    assert list(errors) == ["email", "name"]
    assert "email" in errors
    assert errors.has("name")
    assert not errors.has("age")
    assert errors.codes("email") == ["not_unique", "validation_failed"]
    assert errors.codes("age") == []

    del errors["email"]
    assert len(errors) == 1

    errors.clear()
    assert len(errors) == 0
    assert not errors


def test_fallback_messages_use_property_titles():
    errors = Errors(Person)
    errors.add("email", "not_unique")
    errors.add("person_id", "required_field_missing")
    errors.add("age", "validation_failed", rule="range")
    errors.add("name", "validation_failed", rule="something_custom")

    assert errors.to_dict() == {
        "email": ["Email must be unique"],
        "person_id": ["Person is missing"],
        "age": ["Age must be within the allowed range"],
        "name": ["Name is invalid"],
    }


def test_property_title_from_definition():
    class Invoice(Model):
        properties = {"ref": {"title": "Reference number"}}

    errors = Errors(Invoice)
    errors.add("ref", "not_unique")
    assert errors.all() == ["Reference number must be unique"]


def test_locale_translates_codes_and_titles():
    Model.set_locale(Locale(phrases={"en": {
        "not_unique": "{property} is already taken",
        "properties": {"Widget": {"sku": "Stock code"}},
    }}))

    errors = Errors(Widget)
    errors.add("sku", "not_unique")
    errors.add("name", "required_field_missing")

    assert errors["sku"] == ["Stock code is already taken"]
    assert errors["name"] == ["Name is missing"]


def test_locale_per_call_language():
    locale = Locale(phrases={
        "en": {"not_unique": "{property} must be unique"},
        "de": {"not_unique": "{property} ist bereits vergeben"},
    })

    errors = Errors(Widget, locale=locale)
    errors.add("sku", "not_unique")

    assert errors.all() == ["Sku must be unique"]
    assert errors.all(locale="de") == ["Sku ist bereits vergeben"]


def test_model_errors_render_through_installed_locale(mock_driver):
    mock_driver.total_records.return_value = 1
    Model.set_locale(Locale(phrases={"en": {"not_unique": "{property} exists"}}))

    widget = Widget()
    assert not widget.create({"name": "Bolt", "sku": "A1"})
    assert widget.errors()["sku"] == ["Sku exists"]


def test_locale_translate():
    locale = Locale(phrases={"en": {"greeting": {"hello": "Hello {name}, {unknown}"}}})

    assert locale.has_phrase("greeting.hello")
    assert locale.translate("greeting.hello", {"name": "Bob"}) == "Hello Bob, {unknown}"
    assert locale("missing.key") == "missing.key"
    assert locale("missing.key", fallback="{property} fallback", parameters={"property": "X"}) == "X fallback"


def test_locale_from_files(tmp_path):
    json_file = tmp_path / "en.json"
    json_file.write_text(json.dumps({"not_unique": "{property} is taken"}))

    yaml_file = tmp_path / "fr.yml"
    yaml_file.write_text("not_unique: \"{property} est pris\"\n")

    english = Locale.from_file(json_file)
    french = Locale.from_file(yaml_file)

    assert english.locale == "en"
    assert english("not_unique", {"property": "Email"}) == "Email is taken"
    assert french.locale == "fr"
    assert french("not_unique", {"property": "Email"}) == "Email est pris"

    with pytest.raises(ValueError):
        Locale.from_file(tmp_path / "phrases.txt")
