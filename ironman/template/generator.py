"""Generation engine: render a generator's source tree into a target path.

A ``directory`` generator renders every file of its tree below the target
directory, preserving subdirectories and permission bits.  A ``file``
generator renders its single template file to
``<target parent>/<file_generation_relative_path>/<target name>``.

Conflicts are checked before anything is written.  Once writing has started
the first failing file aborts the walk; files already written are left in
place.
"""

from __future__ import annotations

import os
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import TemplateError
from rich.console import Console

from ironman.errors import (
    ConflictError,
    InvalidTargetError,
    OperationCancelledError,
    RenderError,
    ValidationFailedError,
    wrap_os_error,
)
from ironman.template.model import Generator, GeneratorType, Template
from ironman.template.renderer import TemplateRenderer
from ironman.utils import console as default_console
from ironman.utils import is_dir_empty

RESERVED_CONTEXT_KEYS = ("template", "generator", "values")


@dataclass
class GeneratorData:
    """Everything a generator file can reference while rendering."""

    template: Template
    generator: Generator
    values: dict[str, Any] = field(default_factory=dict)

    def context(self) -> dict[str, Any]:
        """Jinja2 context: values at top level plus the reserved keys."""
        context = {k: v for k, v in self.values.items() if k not in RESERVED_CONTEXT_KEYS}
        context.update(template=self.template, generator=self.generator, values=self.values)
        return context


class TemplateGenerator:
    """Renders one generator into a generation path.

    Args:
        generator_path: Source tree of the generator inside the template.
        generation_path: Target file or directory (made absolute).
        data: Template, generator and values available to templates.
        metadata_file: Declaration file name, never rendered.
        ignore: Entry names skipped anywhere in the source tree.
        console: Where progress lines are printed.
    """

    def __init__(
        self,
        generator_path: str | Path,
        generation_path: str | Path,
        data: GeneratorData,
        *,
        metadata_file: str = ".ironman.yaml",
        ignore: list[str] | None = None,
        console: Console | None = None,
    ) -> None:
        self.generator_path = Path(generator_path)
        self.generation_path = Path(os.path.abspath(generation_path))
        self.data = data
        self.metadata_file = metadata_file
        self.ignore = set(ignore if ignore is not None else [".git"])
        self.console = console or default_console
        self.renderer = TemplateRenderer(self.generator_path)

    # -- Public API --------------------------------------------------------

    def generate(
        self,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> list[Path]:
        """Check the target, then render every source file.

        Args:
            force: Overwrite an existing file or write into a non-empty
                directory.
            cancel: Checked before each file; when set the walk stops with
                ``OperationCancelledError``.

        Returns:
            Paths of the written files.
        """
        if self.data.generator.ttype == GeneratorType.FILE:
            return self._generate_file(force, cancel)
        return self._generate_directory(force, cancel)

    def source_files(self) -> list[Path]:
        """Relative paths of every renderable file in the generator tree."""
        files: list[Path] = []
        for root, dirs, names in os.walk(self.generator_path):
            dirs[:] = sorted(d for d in dirs if d not in self.ignore)
            rel_root = Path(root).relative_to(self.generator_path)
            for name in sorted(names):
                if name in self.ignore:
                    continue
                if rel_root == Path(".") and name == self.metadata_file:
                    continue
                files.append(rel_root / name)
        return files

    # -- File generators ---------------------------------------------------

    def _generate_file(self, force: bool, cancel: threading.Event | None) -> list[Path]:
        base_dir = self.generation_path.parent
        if not base_dir.is_dir():
            raise InvalidTargetError(
                f"Directory {base_dir} does not exist", path=base_dir
            )

        relative = self.data.generator.file_generation_relative_path
        file_path = base_dir / relative / self.generation_path.name
        if file_path.exists() and not force:
            raise ConflictError(f"File already exists {file_path}", path=file_path)

        sources = self.source_files()
        if len(sources) != 1:
            raise ValidationFailedError(
                f"File generator '{self.data.generator.id}' must contain exactly one "
                f"template file, found {len(sources)}",
                payload={"generator": self.data.generator.id, "files": [str(s) for s in sources]},
                template_id=self.data.template.id,
                path=self.generator_path,
            )

        self._check_cancel(cancel)
        self._ensure_dir(file_path.parent)
        self._write(sources[0], file_path)
        return [file_path]

    # -- Directory generators ----------------------------------------------

    def _generate_directory(self, force: bool, cancel: threading.Event | None) -> list[Path]:
        target = self.generation_path
        self._prepare_target_directory(target, force)

        written: list[Path] = []
        for rel in self.source_files():
            self._check_cancel(cancel)
            output = target / self._render_relative(rel)
            self._ensure_dir(output.parent)
            self._write(rel, output)
            written.append(output)
        return written

    def _prepare_target_directory(self, target: Path, force: bool) -> None:
        if not target.parent.is_dir():
            raise InvalidTargetError(
                f"Directory {target.parent} does not exist", path=target.parent
            )
        try:
            target.mkdir()
        except FileExistsError:
            pass
        except OSError as exc:
            raise wrap_os_error(exc, f"Failed to create generation path {target}", path=target) from exc
        else:
            return

        if not target.is_dir():
            raise ConflictError(
                f"Generation path exists and is not a directory {target}", path=target
            )
        if force:
            return
        try:
            empty = is_dir_empty(target)
        except OSError as exc:
            raise wrap_os_error(exc, f"Failed to inspect generation path {target}", path=target) from exc
        if not empty:
            raise ConflictError(f"Generation path is not empty {target}", path=target)

    # -- Internal helpers --------------------------------------------------

    def _render_relative(self, rel: Path) -> Path:
        """Render templated segments of a relative output path."""
        context = self.data.context()
        parts = []
        for part in rel.parts:
            try:
                rendered = self.renderer.render_string(part, context)
            except TemplateError as exc:
                raise RenderError(
                    f"Failed to render file name {rel}: {exc}",
                    template_id=self.data.template.id,
                    path=self.generator_path / rel,
                ) from exc
            if rendered.strip() in ("", ".", "..") or "/" in rendered or os.sep in rendered:
                raise RenderError(
                    f"File name {part!r} of {rel} rendered to an unusable path segment {rendered!r}",
                    template_id=self.data.template.id,
                    path=self.generator_path / rel,
                )
            parts.append(rendered)
        return Path(*parts)

    def _write(self, rel: Path, output: Path) -> None:
        source = self.generator_path / rel
        try:
            raw = source.read_bytes()
        except OSError as exc:
            raise wrap_os_error(exc, f"Failed to read {source}", path=source) from exc

        try:
            raw.decode("utf-8")
        except UnicodeDecodeError:
            content = raw
        else:
            try:
                content = self.renderer.render(rel.as_posix(), self.data.context()).encode("utf-8")
            except TemplateError as exc:
                raise RenderError(
                    f"Failed to render {source}: {exc}",
                    template_id=self.data.template.id,
                    path=source,
                ) from exc

        try:
            output.write_bytes(content)
            shutil.copymode(source, output)
        except OSError as exc:
            raise wrap_os_error(exc, f"Failed to write {output}", path=output) from exc
        self.console.print(f"  [green]+[/green] {output}")

    def _ensure_dir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise wrap_os_error(exc, f"Failed to create directory {path}", path=path) from exc

    @staticmethod
    def _check_cancel(cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError("Generation cancelled")
