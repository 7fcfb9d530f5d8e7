"""Tests for template skeleton creation (ironman.template.create)."""

from __future__ import annotations

from pathlib import Path

import pytest

from ironman.errors import ConflictError
from ironman.template.create import create_template
from ironman.template.reader import FSReader
from ironman.template.validator import default_validators


class TestCreateTemplate:
    @pytest.mark.unit
    def test_skeleton_is_readable_and_valid(self, tmp_path: Path):
        root = create_template(tmp_path / "my-template")
        template = FSReader().read(root)

        assert template.id == "my-template"
        assert template.version == "0.1.0"
        assert [g.id for g in template.generators] == ["app"]
        assert template.generators[0].fields[0].id == "project_name"
        assert all(v.validate(template)[0] for v in default_validators())

    @pytest.mark.unit
    def test_explicit_id(self, tmp_path: Path):
        root = create_template(tmp_path / "dir", template_id="custom")
        assert FSReader().read(root).id == "custom"

    @pytest.mark.unit
    def test_empty_existing_directory(self, tmp_path: Path):
        (tmp_path / "empty").mkdir()
        root = create_template(tmp_path / "empty")
        assert (root / "generators" / "app" / "README.md").exists()

    @pytest.mark.unit
    def test_non_empty_directory_conflicts(self, tmp_path: Path):
        (tmp_path / "busy").mkdir()
        (tmp_path / "busy" / "file.txt").write_text("x")
        with pytest.raises(ConflictError):
            create_template(tmp_path / "busy")

    @pytest.mark.unit
    def test_file_path_conflicts(self, tmp_path: Path):
        (tmp_path / "file").write_text("x")
        with pytest.raises(ConflictError):
            create_template(tmp_path / "file")
