"""Unit tests for template validators (ironman.template.validator).

Tests cover:
- GeneratorIDValidator: empty and duplicate generator IDs
- FileGeneratorValidator: relative paths that escape the target
- FieldValidator: duplicate fields, incomplete array and fixed_list fields
- Rendering a report into an error message
"""

from __future__ import annotations

import pytest

from ironman.template.model import (
    FileTypeOptions,
    Generator,
    GeneratorField,
    Template,
)
from ironman.template.validator import (
    FieldValidator,
    FileGeneratorValidator,
    GeneratorIDValidator,
    ValidationReport,
    Validator,
    default_validators,
    render_validation_message,
)


def _file_generator(gid: str, relative: str) -> Generator:
    return Generator(
        id=gid,
        type="file",
        file_type_options=FileTypeOptions(file_generation_relative_path=relative),
    )


class TestGeneratorIDValidator:
    @pytest.mark.unit
    def test_unique_ids_pass(self):
        template = Template(id="t", generators=[Generator(id="a"), Generator(id="b")])
        valid, report = GeneratorIDValidator().validate(template)
        assert valid
        assert report.issues == []

    @pytest.mark.unit
    def test_duplicate_ids(self):
        template = Template(
            id="t",
            generators=[
                Generator(id="a", directory_name="a1"),
                Generator(id="a", directory_name="a2"),
            ],
        )
        valid, report = GeneratorIDValidator().validate(template)
        assert not valid
        assert report.issues[0].location == "generators.a"
        assert "2 times" in report.issues[0].message

    @pytest.mark.unit
    def test_empty_id(self):
        template = Template(id="t", generators=[Generator(id=" ", directory_name="blank")])
        valid, report = GeneratorIDValidator().validate(template)
        assert not valid
        assert report.issues[0].location == "generators.blank"


class TestFileGeneratorValidator:
    @pytest.mark.unit
    @pytest.mark.parametrize("relative", ["", "controllers", "internal/handlers"])
    def test_paths_below_target_pass(self, relative: str):
        template = Template(id="t", generators=[_file_generator("c", relative)])
        valid, _ = FileGeneratorValidator().validate(template)
        assert valid

    @pytest.mark.unit
    @pytest.mark.parametrize("relative", ["/etc", "../outside", "a/../../b", "\\windows"])
    def test_escaping_paths_fail(self, relative: str):
        template = Template(id="t", generators=[_file_generator("c", relative)])
        valid, report = FileGeneratorValidator().validate(template)
        assert not valid
        assert report.issues[0].location == "generators.c.file_type_options"

    @pytest.mark.unit
    def test_directory_generators_ignored(self):
        template = Template(id="t", generators=[Generator(id="app")])
        assert FileGeneratorValidator().validate(template)[0]


class TestFieldValidator:
    @pytest.mark.unit
    def test_well_formed_fields_pass(self):
        generator = Generator(
            id="app",
            fields=[
                GeneratorField(id="name"),
                GeneratorField(id="ports", type="array", field_definition={"type": "text"}),
                GeneratorField(id="db", type="fixed_list", options=["pg", "mysql"], default="pg"),
            ],
        )
        assert FieldValidator().validate(Template(id="t", generators=[generator]))[0]

    @pytest.mark.unit
    def test_reports_every_problem(self):
        generator = Generator(
            id="app",
            fields=[
                GeneratorField(id="name"),
                GeneratorField(id="name"),
                GeneratorField(id="ports", type="array"),
                GeneratorField(id="db", type="fixed_list"),
                GeneratorField(id="cache", type="fixed_list", options=["redis"], default="memcached"),
            ],
        )
        valid, report = FieldValidator().validate(Template(id="t", generators=[generator]))
        assert not valid
        messages = [issue.message for issue in report.issues]
        assert "field ID declared more than once" in messages
        assert "array fields need a field_definition" in messages
        assert "fixed_list fields need options" in messages
        assert any("memcached" in m for m in messages)


class TestValidationMessage:
    @pytest.mark.unit
    def test_renders_report(self):
        report = ValidationReport(template_id="go-api", validator="field")
        report.add("generators.app.fields.name", "field ID declared more than once")
        message = render_validation_message(report)
        assert message == (
            "Template 'go-api' failed field validation:\n"
            "  - generators.app.fields.name: field ID declared more than once"
        )

    @pytest.mark.unit
    def test_non_report_payload(self):
        assert render_validation_message("plain text") == "plain text"

    @pytest.mark.unit
    def test_defaults_satisfy_protocol(self):
        validators = default_validators()
        assert len(validators) == 3
        assert all(isinstance(v, Validator) for v in validators)
