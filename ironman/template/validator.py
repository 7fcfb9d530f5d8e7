"""Template validators run before a template is indexed.

A validator returns ``(valid, report)``.  When ``valid`` is false the report
is rendered through ``VALIDATION_TEMPLATE`` into the message of a
``ValidationFailedError``; an exception raised by a validator means the
validator itself failed, not the template.
"""

from __future__ import annotations

from collections import Counter
from typing import Protocol, runtime_checkable

from jinja2 import Environment
from pydantic import BaseModel, Field

from ironman.template.model import FieldType, GeneratorType, Template


class ValidationIssue(BaseModel):
    """One problem found in a template declaration."""
    location: str = Field(..., description="Dotted path of the offending entry")
    message: str


class ValidationReport(BaseModel):
    """Issues a validator found in one template."""
    template_id: str
    validator: str
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    def add(self, location: str, message: str) -> None:
        self.issues.append(ValidationIssue(location=location, message=message))


@runtime_checkable
class Validator(Protocol):
    def validate(self, template: Template) -> tuple[bool, ValidationReport]:
        ...


VALIDATION_TEMPLATE = (
    "Template '{{ report.template_id }}' failed {{ report.validator }} validation:\n"
    "{% for issue in report.issues %}"
    "  - {{ issue.location }}: {{ issue.message }}\n"
    "{% endfor %}"
)

_validation_env = Environment(keep_trailing_newline=False)
_validation_template = _validation_env.from_string(VALIDATION_TEMPLATE)


def render_validation_message(report: object) -> str:
    """Render a validator's report into the user-facing message."""
    if isinstance(report, ValidationReport):
        return _validation_template.render(report=report).rstrip()
    return str(report)


class GeneratorIDValidator:
    """Generator IDs must be present and unique within the template."""

    def validate(self, template: Template) -> tuple[bool, ValidationReport]:
        report = ValidationReport(template_id=template.id, validator="generator id")
        counts = Counter(g.id for g in template.generators)
        for generator in template.generators:
            if not generator.id.strip():
                report.add(f"generators.{generator.directory_name}", "generator ID cannot be empty")
        for generator_id, count in sorted(counts.items()):
            if count > 1 and generator_id.strip():
                report.add(
                    f"generators.{generator_id}",
                    f"generator ID declared {count} times",
                )
        return report.valid, report


class FileGeneratorValidator:
    """File generators write below the target's parent, never above it."""

    def validate(self, template: Template) -> tuple[bool, ValidationReport]:
        report = ValidationReport(template_id=template.id, validator="file generator")
        for generator in template.generators:
            if generator.ttype != GeneratorType.FILE:
                continue
            relative = generator.file_generation_relative_path
            parts = relative.replace("\\", "/").split("/")
            if relative.startswith(("/", "\\")) or ".." in parts:
                report.add(
                    f"generators.{generator.id}.file_type_options",
                    f"file_generation_relative_path must stay below the target directory: {relative!r}",
                )
        return report.valid, report


class FieldValidator:
    """Generator field declarations must be unique and complete."""

    def validate(self, template: Template) -> tuple[bool, ValidationReport]:
        report = ValidationReport(template_id=template.id, validator="field")
        for generator in template.generators:
            seen: set[str] = set()
            for gen_field in generator.fields:
                location = f"generators.{generator.id}.fields.{gen_field.id}"
                if gen_field.id in seen:
                    report.add(location, "field ID declared more than once")
                seen.add(gen_field.id)
                if gen_field.type == FieldType.ARRAY and not gen_field.field_definition:
                    report.add(location, "array fields need a field_definition")
                if gen_field.type == FieldType.FIXED_LIST and not gen_field.options:
                    report.add(location, "fixed_list fields need options")
                if (
                    gen_field.type == FieldType.FIXED_LIST
                    and gen_field.default is not None
                    and gen_field.default not in gen_field.options
                ):
                    report.add(location, f"default {gen_field.default!r} is not one of the options")
        return report.valid, report


def default_validators() -> list[Validator]:
    return [GeneratorIDValidator(), FileGeneratorValidator(), FieldValidator()]
