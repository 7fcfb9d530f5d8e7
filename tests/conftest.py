"""Shared pytest fixtures for the ironman test suite.

Provides reusable fixtures for:
- An ironman home inside ``tmp_path`` and a quiet Rich console
- A sample template tree with a directory and a file generator
- A real git repository holding the sample template
- An ``Ironman`` wired to the temporary home
"""

from __future__ import annotations

import io
import shutil
import subprocess
import textwrap
from pathlib import Path

import pytest
from rich.console import Console

from ironman.config import IronmanConfig
from ironman.ironman import Ironman


# ---------------------------------------------------------------------------
# Home & console
# ---------------------------------------------------------------------------

@pytest.fixture
def quiet_console() -> Console:
    """Console that writes into a buffer instead of the terminal."""
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def config(tmp_path: Path) -> IronmanConfig:
    """Configuration rooted at a temporary ironman home."""
    return IronmanConfig(home=tmp_path / "home")


@pytest.fixture
def ironman(config: IronmanConfig, quiet_console: Console) -> Ironman:
    """Ironman with the default git manager and file index."""
    ir = Ironman(config, console=quiet_console)
    ir.ensure_home()
    return ir


# ---------------------------------------------------------------------------
# Sample template
# ---------------------------------------------------------------------------

def write_sample_template(root: Path, template_id: str = "go-api") -> Path:
    """Write a template with an ``app`` directory and a ``controller`` file generator."""
    (root / "generators" / "app" / "cmd").mkdir(parents=True)
    (root / "generators" / "controller").mkdir(parents=True)

    (root / ".ironman.yaml").write_text(
        textwrap.dedent(f"""\
            id: {template_id}
            version: 1.0.0
            name: Go API
            description: Scaffolding for Go HTTP services
        """),
        encoding="utf-8",
    )

    app = root / "generators" / "app"
    (app / ".ironman.yaml").write_text(
        textwrap.dedent("""\
            id: app
            type: directory
            name: Application
            fields:
              - id: name
                type: text
                label: Service name
        """),
        encoding="utf-8",
    )
    (app / "README.md").write_text("# {{ name }}\n\nBuilt from {{ template.id }}.\n", encoding="utf-8")
    (app / "cmd" / "main.go").write_text(
        'package main\n\n// {{ values.name | pascal_case }} entry point\nfunc main() {}\n',
        encoding="utf-8",
    )
    run_sh = app / "run.sh"
    run_sh.write_text("#!/bin/sh\necho {{ name }}\n", encoding="utf-8")
    run_sh.chmod(0o755)

    controller = root / "generators" / "controller"
    (controller / ".ironman.yaml").write_text(
        textwrap.dedent("""\
            id: controller
            type: file
            file_type_options:
              file_generation_relative_path: controllers
        """),
        encoding="utf-8",
    )
    (controller / "controller.go").write_text(
        "type {{ name | pascal_case }}Controller struct{}\n", encoding="utf-8"
    )
    return root


@pytest.fixture
def template_source(tmp_path: Path) -> Path:
    """Sample template directory named ``go-api``."""
    return write_sample_template(tmp_path / "sources" / "go-api")


@pytest.fixture
def make_template(tmp_path: Path):
    """Factory writing further sample templates under ``tmp_path/sources``."""
    def _make(name: str, template_id: str | None = None) -> Path:
        return write_sample_template(tmp_path / "sources" / name, template_id or name)
    return _make


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------

def git(*args: str, cwd: Path) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


def commit_all(repo: Path, message: str) -> None:
    git("add", ".", cwd=repo)
    git("commit", "-m", message, cwd=repo)


@pytest.fixture
def git_template_repo(template_source: Path) -> Path:
    """The sample template committed to a real git repository.

    Tests that need it are skipped when git is not installed.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    git("init", cwd=template_source)
    git("config", "user.email", "test@ironman.local", cwd=template_source)
    git("config", "user.name", "Ironman Test", cwd=template_source)
    git("config", "commit.gpgsign", "false", cwd=template_source)
    commit_all(template_source, "Initial commit")
    return template_source


@pytest.fixture
def git_commit():
    """Commit every change in a repository: ``git_commit(repo, message)``."""
    return commit_all
