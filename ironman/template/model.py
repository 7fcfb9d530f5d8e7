"""Pydantic v2 models for templates and their generators.

A ``Template`` is read from the declaration files of a template directory and
persisted in the index.  Each ``Generator`` describes one source tree under
the template's ``generators/`` directory that can be rendered into a target.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SourceType(str, Enum):
    """How a template was materialized under the templates root."""
    URL = "url"
    LINK = "link"


class GeneratorType(str, Enum):
    """Whether a generator produces a single file or a directory tree."""
    FILE = "file"
    DIRECTORY = "directory"


class FieldType(str, Enum):
    """Value kinds a generator can ask for."""
    TEXT = "text"
    ARRAY = "array"
    FIXED_LIST = "fixed_list"


# ---------------------------------------------------------------------------
# Generator models
# ---------------------------------------------------------------------------

class GeneratorField(BaseModel):
    """A value a generator expects to receive at generation time."""
    id: str = Field(..., description="Key under which the value is passed to templates")
    type: FieldType = Field(default=FieldType.TEXT)
    label: str = Field(default="", description="Prompt shown when asking for the value")
    default: Optional[Any] = Field(default=None)
    optional: bool = Field(default=False)
    size: Optional[int] = Field(default=None, ge=0, description="Fixed length of array fields")
    field_definition: Optional[dict[str, Any]] = Field(
        default=None, description="Definition of each element of an array field"
    )
    options: list[str] = Field(default_factory=list, description="Allowed fixed_list values")


class FileTypeOptions(BaseModel):
    """Options that only apply to ``file`` generators."""
    file_generation_relative_path: str = Field(
        default="", description="Output subdirectory relative to the target's parent"
    )


class Generator(BaseModel):
    """A generator declared inside a template."""

    id: str = Field(..., description="Generator ID, unique within its template")
    ttype: GeneratorType = Field(default=GeneratorType.DIRECTORY, alias="type")
    name: str = Field(default="")
    description: str = Field(default="")
    directory_name: str = Field(default="", description="Folder name under generators/")
    file_type_options: FileTypeOptions = Field(default_factory=FileTypeOptions)
    fields: list[GeneratorField] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def file_generation_relative_path(self) -> str:
        return self.file_type_options.file_generation_relative_path


# ---------------------------------------------------------------------------
# Template model
# ---------------------------------------------------------------------------

class Template(BaseModel):
    """An installed or linked template and its generators."""
    id: str = Field(..., description="Template ID, unique across the index")
    version: str = Field(default="")
    name: str = Field(default="")
    description: str = Field(default="")
    directory_name: str = Field(default="", description="Folder name under the templates root")
    source_type: SourceType = Field(default=SourceType.URL)
    generators: list[Generator] = Field(default_factory=list)

    def generator(self, generator_id: str) -> Generator | None:
        """Return the generator with *generator_id*, or ``None``."""
        for generator in self.generators:
            if generator.id == generator_id:
                return generator
        return None
