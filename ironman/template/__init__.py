"""Template model, index, source managers and generation engine.

Quick usage::

    from ironman.template import FSReader, TemplateGenerator, GeneratorData

    template = FSReader().read(Path("~/.ironman/templates/go-api").expanduser())
    generator = template.generator("app")
"""

from ironman.template.generator import GeneratorData, TemplateGenerator
from ironman.template.index import FileIndex, Index, MemoryIndex
from ironman.template.manager import GitManager, Manager, TemplateStore, directory_name_from_locator
from ironman.template.model import (
    FieldType,
    FileTypeOptions,
    Generator,
    GeneratorField,
    GeneratorType,
    SourceType,
    Template,
)
from ironman.template.reader import FSReader, ModelReader, YAMLDecoder
from ironman.template.validator import (
    ValidationReport,
    Validator,
    default_validators,
    render_validation_message,
)

__all__ = [
    "FSReader",
    "FieldType",
    "FileIndex",
    "FileTypeOptions",
    "Generator",
    "GeneratorData",
    "GeneratorField",
    "GeneratorType",
    "GitManager",
    "Index",
    "Manager",
    "MemoryIndex",
    "ModelReader",
    "SourceType",
    "Template",
    "TemplateGenerator",
    "TemplateStore",
    "ValidationReport",
    "Validator",
    "YAMLDecoder",
    "default_validators",
    "directory_name_from_locator",
    "render_validation_message",
]
