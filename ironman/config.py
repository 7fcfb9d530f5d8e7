"""Ironman configuration.

Typed configuration for the home directory layout and the git transport.
Settings use a Pydantic v2 model so they are validated at construction time
and can be overridden from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_HOME = Path("~/.ironman")


class IronmanConfig(BaseModel):
    """Layout of the ironman home directory and transport settings.

    ``home`` holds one folder (or symlink) per template under
    ``templates_dir_name`` and the index artifact ``index_name``.  Instances
    are typically created once by the CLI and passed to ``Ironman``.
    """

    home: Path = Field(default=DEFAULT_HOME)
    templates_dir_name: str = Field(default="templates")
    index_name: str = Field(default="templates.index")
    generators_dir_name: str = Field(
        default="generators", description="Directory holding generators inside a template"
    )
    metadata_file: str = Field(
        default=".ironman.yaml", description="Declaration file name for templates and generators"
    )
    ignore: list[str] = Field(
        default_factory=lambda: [".git"],
        description="File and directory names skipped when reading or rendering templates",
    )
    git_binary: str = Field(default="git")
    git_timeout: float = Field(default=300.0, gt=0, description="Per-command timeout in seconds")

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def home_path(self) -> Path:
        """The home directory with ``~`` expanded."""
        return self.home.expanduser()

    @property
    def templates_path(self) -> Path:
        return self.home_path / self.templates_dir_name

    @property
    def index_path(self) -> Path:
        return self.home_path / self.index_name

    @classmethod
    def from_env(cls) -> "IronmanConfig":
        """Build an ``IronmanConfig`` from environment variables.

        Recognised variables (all optional):
            IRONMAN_HOME, IRONMAN_GIT_BINARY, IRONMAN_GIT_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("IRONMAN_HOME"):
            kwargs["home"] = Path(os.environ["IRONMAN_HOME"])
        if os.environ.get("IRONMAN_GIT_BINARY"):
            kwargs["git_binary"] = os.environ["IRONMAN_GIT_BINARY"]
        if os.environ.get("IRONMAN_GIT_TIMEOUT"):
            kwargs["git_timeout"] = float(os.environ["IRONMAN_GIT_TIMEOUT"])
        return cls(**kwargs)

    def ensure_directories(self) -> None:
        """Create the home and templates directories if they do not exist."""
        self.templates_path.mkdir(parents=True, exist_ok=True)
