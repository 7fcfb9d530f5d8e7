"""Scaffold a new, empty template that can be linked or pushed to a remote.

The skeleton contains the template declaration and one ``directory``
generator with a README that shows how values are referenced.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ironman.errors import ConflictError, wrap_os_error
from ironman.utils import is_dir_empty

SAMPLE_README = """\
# {{ values.project_name }}

Generated by the {{ template.id }} template, generator {{ generator.id }}.
"""


def _declaration(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def create_template(
    path: str | Path,
    template_id: str | None = None,
    metadata_file: str = ".ironman.yaml",
    generators_dir: str = "generators",
) -> Path:
    """Write a template skeleton at *path*.

    Args:
        path: Directory to create; may exist only if empty.
        template_id: ID declared for the template. Defaults to the directory
            name.
        metadata_file: Declaration file name.
        generators_dir: Directory holding the generators.

    Returns:
        The template root.

    Raises:
        ConflictError: *path* exists and is not an empty directory.
    """
    root = Path(path)
    if root.exists() and (not root.is_dir() or not is_dir_empty(root)):
        raise ConflictError(f"Template path is not empty {root}", path=root)

    template_id = template_id or root.resolve().name
    app_dir = root / generators_dir / "app"
    try:
        app_dir.mkdir(parents=True, exist_ok=True)
        (root / metadata_file).write_text(
            _declaration({
                "id": template_id,
                "version": "0.1.0",
                "name": template_id,
                "description": f"{template_id} template",
            }),
            encoding="utf-8",
        )
        (app_dir / metadata_file).write_text(
            _declaration({
                "id": "app",
                "type": "directory",
                "name": "Application",
                "description": "Generates a new application directory",
                "fields": [
                    {
                        "id": "project_name",
                        "type": "text",
                        "label": "Project name",
                    },
                ],
            }),
            encoding="utf-8",
        )
        (app_dir / "README.md").write_text(SAMPLE_README, encoding="utf-8")
    except OSError as exc:
        raise wrap_os_error(exc, f"Failed to create template at {root}", path=root) from exc
    return root
