"""Template index: the persistent record of what is installed.

``Index`` is the protocol the lifecycle operations depend on.  Two adapters
are provided: ``MemoryIndex`` for tests and embedding, and ``FileIndex``,
which stores every template as JSON in a single index file and rewrites it
atomically on each mutation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from ironman.errors import ConflictError, IOFailureError, NotFoundError
from ironman.template.model import Template
from ironman.utils import load_json, save_json


@runtime_checkable
class Index(Protocol):
    """Mapping from template ID to ``Template``.

    ``exists`` never treats a missing ID as an error; ``find_template_by_id``
    and ``update`` raise ``NotFoundError`` and ``index`` raises
    ``ConflictError`` for an ID that is already present.  ``list`` makes no
    ordering guarantee.
    """

    def exists(self, template_id: str) -> bool:
        ...

    def find_template_by_id(self, template_id: str) -> Template:
        ...

    def index(self, template: Template) -> str:
        ...

    def update(self, template: Template) -> None:
        ...

    def delete(self, template_id: str) -> str:
        ...

    def list(self) -> list[Template]:
        ...


class MemoryIndex:
    """Index held in a dictionary; nothing survives the process."""

    def __init__(self) -> None:
        self._templates: dict[str, Template] = {}

    def exists(self, template_id: str) -> bool:
        return template_id in self._templates

    def find_template_by_id(self, template_id: str) -> Template:
        try:
            return self._templates[template_id].model_copy(deep=True)
        except KeyError:
            raise NotFoundError(
                f"Template '{template_id}' is not indexed", template_id=template_id
            ) from None

    def index(self, template: Template) -> str:
        if template.id in self._templates:
            raise ConflictError(
                f"Template '{template.id}' is already indexed", template_id=template.id
            )
        self._templates[template.id] = template.model_copy(deep=True)
        return template.id

    def update(self, template: Template) -> None:
        if template.id not in self._templates:
            raise NotFoundError(
                f"Template '{template.id}' is not indexed", template_id=template.id
            )
        self._templates[template.id] = template.model_copy(deep=True)

    def delete(self, template_id: str) -> str:
        if self._templates.pop(template_id, None) is None:
            raise NotFoundError(
                f"Template '{template_id}' is not indexed", template_id=template_id
            )
        return template_id

    def list(self) -> list[Template]:
        return [t.model_copy(deep=True) for t in self._templates.values()]


class FileIndex:
    """Index persisted as a JSON document.

    The file is read on every call and rewritten atomically on every
    mutation, so each call reflects committed state.  There is no locking:
    one writer per index file is assumed.

    Layout::

        {"templates": {"<id>": {...template fields...}}}
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self, template_id: str) -> bool:
        return template_id in self._load()

    def find_template_by_id(self, template_id: str) -> Template:
        records = self._load()
        if template_id not in records:
            raise NotFoundError(
                f"Template '{template_id}' is not indexed", template_id=template_id
            )
        return self._decode(template_id, records[template_id])

    def index(self, template: Template) -> str:
        records = self._load()
        if template.id in records:
            raise ConflictError(
                f"Template '{template.id}' is already indexed", template_id=template.id
            )
        records[template.id] = template.model_dump(mode="json")
        self._save(records)
        return template.id

    def update(self, template: Template) -> None:
        records = self._load()
        if template.id not in records:
            raise NotFoundError(
                f"Template '{template.id}' is not indexed", template_id=template.id
            )
        records[template.id] = template.model_dump(mode="json")
        self._save(records)

    def delete(self, template_id: str) -> str:
        records = self._load()
        if records.pop(template_id, None) is None:
            raise NotFoundError(
                f"Template '{template_id}' is not indexed", template_id=template_id
            )
        self._save(records)
        return template_id

    def list(self) -> list[Template]:
        return [self._decode(tid, record) for tid, record in self._load().items()]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        try:
            data = load_json(self.path)
        except (OSError, json.JSONDecodeError) as exc:
            raise IOFailureError(f"Failed to read index {self.path}: {exc}", path=self.path) from exc
        # load_json wraps a non-object root under "_root"
        if "_root" in data:
            raise IOFailureError(
                f"Malformed index {self.path}: expected a JSON object at the root",
                path=self.path,
            )
        records = data.get("templates", {})
        if not isinstance(records, dict):
            raise IOFailureError(
                f"Malformed index {self.path}: 'templates' must be an object, "
                f"got {type(records).__name__}",
                path=self.path,
            )
        return dict(records)

    def _save(self, records: dict[str, Any]) -> None:
        try:
            save_json({"templates": records}, self.path)
        except OSError as exc:
            raise IOFailureError(f"Failed to write index {self.path}: {exc}", path=self.path) from exc

    def _decode(self, template_id: str, record: Any) -> Template:
        try:
            return Template.model_validate(record)
        except ValidationError as exc:
            raise IOFailureError(
                f"Corrupt index record for '{template_id}' in {self.path}: {exc}",
                template_id=template_id,
                path=self.path,
            ) from exc
