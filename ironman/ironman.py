"""Ironman lifecycle orchestrator.

Sequences the source manager, the model reader and the index for every
lifecycle operation, and the generation engine for ``generate``:

install   -- fetch -> read model -> validate -> index (source type ``url``)
link      -- symlink -> read model -> validate -> index (source type ``link``)
uninstall -- remove folder (or symlink) -> delete index entry
unlink    -- remove symlink -> delete index entry
update    -- refresh the fetched folder in place, index untouched
generate  -- look up the template -> render one generator into a path

A failure after the template was materialized rolls the materialization back
before the error propagates, so the index and the templates directory never
diverge.

Usage::

    from ironman import Ironman, IronmanConfig

    ironman = Ironman(IronmanConfig(home=Path("~/.ironman")))
    ironman.ensure_home()
    ironman.install("https://github.com/acme/go-api.git")
    ironman.generate("go-api", "app", "./my-service", {"name": "billing"})
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console

from ironman.config import IronmanConfig
from ironman.errors import (
    ConflictError,
    IronmanError,
    NotFoundError,
    ValidationFailedError,
    wrap_os_error,
)
from ironman.template.create import create_template
from ironman.template.generator import GeneratorData, TemplateGenerator
from ironman.template.index import FileIndex, Index
from ironman.template.manager import GitManager, Manager
from ironman.template.model import SourceType, Template
from ironman.template.reader import FSReader, ModelReader, YAMLDecoder
from ironman.template.validator import Validator, default_validators, render_validation_message
from ironman.utils import console as default_console
from ironman.utils import print_warning


@dataclass
class Inconsistency:
    """A mismatch between the index and the templates directory."""

    kind: str  # "missing_location" or "unindexed_directory"
    name: str
    path: Path


class Ironman:
    """Administers the templates of one ironman home.

    Every collaborator can be injected; unset ones default to the git
    manager, the JSON file index and the YAML filesystem reader configured
    from *config*.

    Attributes:
        config: Home layout and transport settings.
        manager: Source manager that materializes template files.
        index: Persistent record of installed templates.
        model_reader: Reads template declarations from disk.
        validators: Run in order before a template is indexed.
    """

    def __init__(
        self,
        config: IronmanConfig | None = None,
        *,
        manager: Manager | None = None,
        index: Index | None = None,
        model_reader: ModelReader | None = None,
        validators: list[Validator] | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config or IronmanConfig()
        self.console = console or default_console
        self.manager = manager or GitManager(
            self.config.templates_path,
            git_binary=self.config.git_binary,
            timeout=self.config.git_timeout,
            console=self.console,
        )
        self.index = index or FileIndex(self.config.index_path)
        self.model_reader = model_reader or FSReader(
            YAMLDecoder(),
            metadata_file=self.config.metadata_file,
            generators_dir=self.config.generators_dir_name,
            ignore=self.config.ignore,
        )
        self.validators = validators if validators is not None else default_validators()

    # ------------------------------------------------------------------
    # Home
    # ------------------------------------------------------------------

    def ensure_home(self) -> Path:
        """Create the home and templates directories when missing."""
        try:
            self.config.ensure_directories()
        except OSError as exc:
            raise wrap_os_error(
                exc, f"Failed to initialize ironman home '{self.config.home_path}'",
                path=self.config.home_path,
            ) from exc
        return self.config.home_path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def install(self, locator: str) -> Template:
        """Fetch a template from *locator* and index it.

        Raises:
            FetchFailedError: The transport failed; nothing was materialized.
            ConflictError: The directory or the template ID is taken.
            ModelReadError: The declarations could not be read.
            ValidationFailedError: A validator rejected the template.
        """
        directory_name = self.manager.install(locator)

        with self._rollback(
            lambda: self.manager.uninstall(directory_name),
            f"install of {locator}",
        ):
            template_path = self.manager.template_location(directory_name)
            template = self.model_reader.read(template_path)
            self._validate(template)
            template = template.model_copy(
                update={"directory_name": directory_name, "source_type": SourceType.URL}
            )
            self.index.index(template)
        return template

    def link(self, path: str | Path, template_id: str) -> Template:
        """Link a local template directory under *template_id* and index it.

        The ID declared in the template's own metadata is replaced by
        *template_id*.
        """
        link_path = self.manager.link(path, template_id)

        with self._rollback(
            lambda: self.manager.unlink(template_id),
            f"link of {path} as {template_id}",
        ):
            template = self.model_reader.read(link_path)
            template = template.model_copy(
                update={
                    "id": template_id,
                    "directory_name": link_path.name,
                    "source_type": SourceType.LINK,
                }
            )
            self._validate(template)
            self.index.index(template)
        return template

    def uninstall(self, template_id: str) -> None:
        """Remove an installed or linked template and its index entry.

        Files are removed before the index entry, so an interrupted uninstall
        leaves an index entry pointing at a missing location (reported by
        :meth:`check`) rather than an unindexed directory.
        """
        template = self._find(template_id)
        if template.source_type == SourceType.LINK:
            self.manager.unlink(template.directory_name)
        else:
            self.manager.uninstall(template.directory_name)
        self.index.delete(template_id)

    def unlink(self, template_id: str) -> None:
        """Remove a linked template's symlink and its index entry."""
        template = self._find(template_id)
        if template.source_type != SourceType.LINK:
            raise ConflictError(
                f"Template '{template_id}' was installed, not linked; uninstall it instead",
                template_id=template_id,
            )
        self.manager.unlink(template.directory_name)
        self.index.delete(template_id)

    def update(self, template_id: str) -> None:
        """Refresh the template's files in place.

        Metadata is not re-indexed here; linked templates pick up metadata
        changes on their next ``generate``.
        """
        template = self._find(template_id)
        self.manager.update(template.directory_name)

    def list(self) -> list[Template]:
        return self.index.list()

    def create(self, path: str | Path, template_id: str | None = None) -> Path:
        """Write a new template skeleton at *path*."""
        return create_template(
            path,
            template_id=template_id,
            metadata_file=self.config.metadata_file,
            generators_dir=self.config.generators_dir_name,
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(
        self,
        template_id: str,
        generator_id: str,
        generation_path: str | Path,
        values: dict[str, Any] | None = None,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> list[Path]:
        """Render *generator_id* of *template_id* into *generation_path*.

        Linked templates have their metadata re-read and re-indexed first.

        Returns:
            Paths of the written files.
        """
        template = self._find(template_id)

        if template.source_type == SourceType.LINK:
            template_path = self.manager.template_location(template.directory_name)
            try:
                refreshed = self.model_reader.read(template_path)
            except IronmanError as exc:
                exc.add_note(f"while refreshing metadata of linked template {template_id}")
                raise
            template = refreshed.model_copy(
                update={
                    "id": template_id,
                    "directory_name": template.directory_name,
                    "source_type": SourceType.LINK,
                }
            )
            self.index.update(template)

        generator = template.generator(generator_id)
        if generator is None:
            raise NotFoundError(
                f"Generator '{generator_id}' does not exist in template '{template_id}'",
                template_id=template_id,
            )

        generator_path = (
            self.manager.template_location(template.directory_name)
            / self.config.generators_dir_name
            / generator.directory_name
        )
        engine = TemplateGenerator(
            generator_path,
            generation_path,
            GeneratorData(template=template, generator=generator, values=dict(values or {})),
            metadata_file=self.config.metadata_file,
            ignore=self.config.ignore,
            console=self.console,
        )
        return engine.generate(force=force, cancel=cancel)

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def check(self) -> list[Inconsistency]:
        """Compare the index with the templates directory."""
        problems: list[Inconsistency] = []
        indexed_dirs: set[str] = set()
        for template in self.index.list():
            indexed_dirs.add(template.directory_name)
            if not self.manager.is_installed(template.directory_name):
                problems.append(Inconsistency(
                    kind="missing_location",
                    name=template.id,
                    path=self.manager.template_location(template.directory_name),
                ))
        for name in self.manager.installed():
            if name not in indexed_dirs:
                problems.append(Inconsistency(
                    kind="unindexed_directory",
                    name=name,
                    path=self.manager.template_location(name),
                ))
        return problems

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find(self, template_id: str) -> Template:
        if not self.index.exists(template_id):
            raise NotFoundError(
                f"Template '{template_id}' is not installed", template_id=template_id
            )
        return self.index.find_template_by_id(template_id)

    def _validate(self, template: Template) -> None:
        for validator in self.validators:
            try:
                valid, report = validator.validate(template)
            except Exception as exc:
                raise IronmanError(
                    f"Validator {type(validator).__name__} failed on template '{template.id}': {exc}",
                    template_id=template.id,
                ) from exc
            if not valid:
                raise ValidationFailedError(
                    render_validation_message(report),
                    payload=report,
                    template_id=template.id,
                )

    @contextmanager
    def _rollback(self, undo: Callable[[], None], operation: str) -> Iterator[None]:
        """Run *undo* if the body fails for any reason, then re-raise.

        A failing *undo* is printed and attached to the original error; it
        never replaces it.
        """
        try:
            yield
        except BaseException as exc:
            try:
                undo()
            except Exception as cleanup_exc:
                print_warning(f"Rollback of {operation} failed: {cleanup_exc}", self.console)
                if isinstance(exc, IronmanError):
                    exc.add_secondary(cleanup_exc, f"rollback of {operation} failed")
                else:
                    exc.add_note(f"rollback of {operation} failed: {cleanup_exc}")
            raise
