import json

import pytest

from automail.catalog import (
    DEFAULT_RECIPIENTS,
    DEFAULT_TEMPLATES,
    RecipientDirectory,
    TemplateRegistry,
    code_catalog,
    load_catalog,
)
from automail.collectors import default_strategies
from automail.errors import ConfigError, RecipientNotFound, TemplateNotFound
from automail.models import MailTemplate, Recipient
from automail.rendering import unresolved_placeholders


def test_directory_resolves_normalized_code():
    directory = RecipientDirectory(DEFAULT_RECIPIENTS)
    recipient = directory.resolve("  pe ")
    assert recipient.name == "John Smith"
    assert "hr" in directory


def test_directory_miss_raises_recipient_not_found():
    directory = RecipientDirectory(DEFAULT_RECIPIENTS)
    with pytest.raises(RecipientNotFound) as excinfo:
        directory.resolve("ZZ")
    assert excinfo.value.code == "ZZ"


def test_registry_miss_raises_template_not_found():
    registry = TemplateRegistry(DEFAULT_TEMPLATES)
    with pytest.raises(TemplateNotFound):
        registry.resolve("TEST")


def test_default_catalog_lists_every_code():
    directory, registry = load_catalog()
    entries = {entry.code: entry for entry in code_catalog(directory, registry)}
    assert sorted(entries) == ["FN", "HR", "IT", "PE", "PM"]
    assert entries["PE"].description == "Production Employee"
    assert entries["HR"].department == "Human Resources"


def test_catalog_skips_codes_without_recipient():
    directory = RecipientDirectory([Recipient("PE", "John", "john@example.com", "Production", "Employee")])
    registry = TemplateRegistry(DEFAULT_TEMPLATES)
    assert [entry.code for entry in code_catalog(directory, registry)] == ["PE"]


def test_template_placeholders_match_strategy_keys():
    strategies = default_strategies()
    reserved = {"RecipientName", "Date", "Department", "Role"}
    for template in DEFAULT_TEMPLATES:
        tokens = set(unresolved_placeholders(template.subject + template.body)) - reserved
        assert tokens == set(template.required_data), template.code
        assert set(strategies[template.code].keys) == tokens, template.code


def test_load_catalog_applies_overrides(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "recipients": [
            {"code": "test", "name": "Tess Tester", "email": "tess@example.com", "department": "Testing", "role": "Developer"},
            {"code": "PE", "name": "Jane Doe", "email": "jane@example.com", "department": "Production", "role": "Employee"},
        ],
        "templates": [
            {"code": "TEST", "subject": "Test - {Date}", "body": "Hi {RecipientName}", "description": "Test Code"},
        ],
    }))

    directory, registry = load_catalog(str(path))

    assert directory.resolve("PE").name == "Jane Doe"
    assert directory.resolve("TEST").department == "Testing"
    assert isinstance(registry.resolve("test"), MailTemplate)
    assert len(registry) == len(DEFAULT_TEMPLATES) + 1


def test_load_catalog_rejects_invalid_json(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_catalog(str(path))


def test_load_catalog_rejects_incomplete_entry(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"recipients": [{"code": "X"}]}))
    with pytest.raises(ConfigError):
        load_catalog(str(path))


def test_load_catalog_missing_file():
    with pytest.raises(ConfigError):
        load_catalog("/nonexistent/catalog.json")
