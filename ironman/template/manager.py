"""Source managers: materialize template files under the templates root.

A ``Manager`` owns the ``templates/`` directory of the ironman home.  Every
template lives there as a folder (fetched from a locator) or as a symlink
(linked from a local path).  ``TemplateStore`` implements the parts that only
touch the local filesystem; transports such as ``GitManager`` compose a store
and add ``install`` and ``update``.
"""

from __future__ import annotations

import os
import posixpath
import shutil
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from rich.console import Console

from ironman.errors import (
    ConflictError,
    FetchFailedError,
    InvalidTargetError,
    NotFoundError,
    wrap_os_error,
)
from ironman.utils import console as default_console


@runtime_checkable
class Manager(Protocol):
    """Capabilities a source backend provides to the lifecycle operations."""

    def install(self, locator: str) -> str:
        ...

    def update(self, directory_name: str) -> None:
        ...

    def uninstall(self, directory_name: str) -> None:
        ...

    def link(self, path: str | Path, template_id: str) -> Path:
        ...

    def unlink(self, template_id: str) -> None:
        ...

    def template_location(self, directory_name: str) -> Path:
        ...

    def is_installed(self, directory_name: str) -> bool:
        ...

    def installed(self) -> list[str]:
        ...


def directory_name_from_locator(locator: str) -> str:
    """Derive the on-disk directory name from a fetch locator.

    Examples::

        directory_name_from_locator("https://github.com/acme/go-api.git") -> "go-api"
        directory_name_from_locator("git@github.com:acme/go-api") -> "go-api"
        directory_name_from_locator("/srv/templates/go-api.git/") -> "go-api"
    """
    trimmed = locator.strip().rstrip("/")
    trimmed = trimmed.removesuffix(".git")
    name = posixpath.basename(trimmed)
    if ":" in name:
        name = name.rsplit(":", 1)[-1]
    if not name or name in (".", ".."):
        raise FetchFailedError(f"Cannot derive a template directory from locator '{locator}'")
    return name


def _validate_name(name: str) -> None:
    if not name:
        raise InvalidTargetError("A template ID cannot be empty")
    if name in (".", "..") or "/" in name or os.sep in name:
        raise InvalidTargetError(f"Invalid template name '{name}'", template_id=name)


class TemplateStore:
    """Local filesystem operations on the templates root."""

    def __init__(self, templates_path: str | Path) -> None:
        self.templates_path = Path(templates_path)

    def template_location(self, directory_name: str) -> Path:
        return self.templates_path / directory_name

    def is_installed(self, directory_name: str) -> bool:
        _validate_name(directory_name)
        return os.path.lexists(self.template_location(directory_name))

    def installed(self) -> list[str]:
        """Names of every folder or symlink under the templates root."""
        if not self.templates_path.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.templates_path.iterdir()
            if not entry.name.startswith(".")
        )

    def remove(self, directory_name: str) -> None:
        """Remove a template folder recursively; a missing folder is a no-op."""
        _validate_name(directory_name)
        location = self.template_location(directory_name)
        if location.is_symlink():
            raise ConflictError(
                f"Template '{directory_name}' is a link; unlink it instead",
                template_id=directory_name,
                path=location,
            )
        if not location.exists():
            return
        try:
            shutil.rmtree(location)
        except OSError as exc:
            raise wrap_os_error(
                exc, f"Failed to remove template {directory_name}",
                template_id=directory_name, path=location,
            ) from exc

    def link(self, path: str | Path, template_id: str) -> Path:
        """Create a symlink at the location of *template_id* pointing to *path*."""
        _validate_name(template_id)
        source = Path(path)
        if not source.exists():
            raise NotFoundError(
                f"Cannot link template, path does not exist: {source}",
                template_id=template_id,
                path=source,
            )
        link_path = self.template_location(template_id)
        if os.path.lexists(link_path):
            raise ConflictError(
                f"A template already occupies '{template_id}'",
                template_id=template_id,
                path=link_path,
            )
        try:
            link_path.parent.mkdir(parents=True, exist_ok=True)
            link_path.symlink_to(source.resolve(), target_is_directory=True)
        except OSError as exc:
            raise wrap_os_error(
                exc, f"Failed to link {source} as template {template_id}",
                template_id=template_id, path=link_path,
            ) from exc
        return link_path

    def unlink(self, template_id: str) -> None:
        """Remove the symlink of *template_id*, never the linked content."""
        _validate_name(template_id)
        link_path = self.template_location(template_id)
        if not link_path.is_symlink():
            raise NotFoundError(
                f"No linked template '{template_id}'",
                template_id=template_id,
                path=link_path,
            )
        try:
            link_path.unlink()
        except OSError as exc:
            raise wrap_os_error(
                exc, f"Failed to remove link for template {template_id}",
                template_id=template_id, path=link_path,
            ) from exc


class GitManager:
    """Manager that fetches templates with ``git clone`` and ``git pull``.

    Git is invoked as a subprocess; its output is captured and shown only
    when a command fails.
    """

    def __init__(
        self,
        templates_path: str | Path,
        git_binary: str = "git",
        timeout: float = 300.0,
        console: Console | None = None,
    ) -> None:
        self.store = TemplateStore(templates_path)
        self.git_binary = git_binary
        self.timeout = timeout
        self.console = console or default_console

    # -- Transport ---------------------------------------------------------

    def install(self, locator: str) -> str:
        """Clone *locator* into the templates root.

        Returns:
            The directory name the template was cloned into.

        Raises:
            ConflictError: The target directory already exists.
            FetchFailedError: ``git clone`` failed.
        """
        directory_name = directory_name_from_locator(locator)
        target = self.template_location(directory_name)
        if os.path.lexists(target):
            raise ConflictError(
                f"Template directory '{directory_name}' already exists",
                template_id=directory_name,
                path=target,
            )
        target.parent.mkdir(parents=True, exist_ok=True)
        self.console.print(f"Cloning [cyan]{locator}[/cyan] into {target}")
        try:
            self._run_git("clone", "--", locator, str(target), template_id=directory_name)
        except BaseException as exc:
            # target did not exist before the clone, anything there is partial
            if os.path.lexists(target):
                try:
                    shutil.rmtree(target)
                except OSError as cleanup_exc:
                    exc.add_note(f"failed to remove partial clone {target}: {cleanup_exc}")
            raise
        return directory_name

    def update(self, directory_name: str) -> None:
        """Pull the latest changes; an up-to-date checkout is a success."""
        _validate_name(directory_name)
        target = self.template_location(directory_name)
        if not target.exists():
            raise NotFoundError(
                f"Template directory '{directory_name}' does not exist",
                template_id=directory_name,
                path=target,
            )
        self._run_git("-C", str(target), "pull", template_id=directory_name)

    # -- Local filesystem --------------------------------------------------

    def uninstall(self, directory_name: str) -> None:
        self.store.remove(directory_name)

    def link(self, path: str | Path, template_id: str) -> Path:
        return self.store.link(path, template_id)

    def unlink(self, template_id: str) -> None:
        self.store.unlink(template_id)

    def template_location(self, directory_name: str) -> Path:
        return self.store.template_location(directory_name)

    def is_installed(self, directory_name: str) -> bool:
        return self.store.is_installed(directory_name)

    def installed(self) -> list[str]:
        return self.store.installed()

    # -- Internal ----------------------------------------------------------

    def _run_git(self, *args: str, template_id: str) -> str:
        """Run git and return stdout; raise ``FetchFailedError`` on failure."""
        cmd = [self.git_binary, *args]
        cmd_str = " ".join(cmd)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
            )
        except subprocess.TimeoutExpired as exc:
            raise FetchFailedError(
                f"Git command timed out after {self.timeout}s: {cmd_str}",
                command=cmd_str,
                template_id=template_id,
            ) from exc
        except OSError as exc:
            raise FetchFailedError(
                f"Failed to run git: {exc}", command=cmd_str, template_id=template_id
            ) from exc

        if result.returncode != 0:
            stderr = result.stderr.strip()
            raise FetchFailedError(
                f"Git command failed (exit {result.returncode}): {cmd_str}\n{stderr}",
                command=cmd_str,
                stderr=stderr,
                template_id=template_id,
            )
        return result.stdout.strip()
