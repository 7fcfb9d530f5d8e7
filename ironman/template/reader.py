"""Read template declarations from disk into ``Template`` models.

A template directory looks like::

    my-template/
    ├── .ironman.yaml            # template declaration
    └── generators/
        ├── app/
        │   ├── .ironman.yaml    # generator declaration
        │   └── ...              # files rendered by the generator
        └── controller/
            ├── .ironman.yaml
            └── controller.py

The reader only parses declarations; it never renders generator files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import ValidationError

from ironman.errors import ModelReadError
from ironman.template.model import Generator, Template


@runtime_checkable
class Decoder(Protocol):
    """Turns the raw bytes of a declaration file into plain data."""

    def decode(self, data: bytes) -> Any:
        ...


@runtime_checkable
class ModelReader(Protocol):
    """Reads the template rooted at a directory."""

    def read(self, root_path: Path) -> Template:
        ...


class YAMLDecoder:
    """Decodes YAML declarations with ``yaml.safe_load``."""

    def decode(self, data: bytes) -> Any:
        return yaml.safe_load(data)


class FSReader:
    """Filesystem-backed model reader.

    Args:
        decoder: Decoder used for every declaration file.
        metadata_file: Name of the declaration file in the template root and
            in every generator directory.
        generators_dir: Directory inside the template that holds generators.
        ignore: Entry names skipped while scanning generators.
    """

    def __init__(
        self,
        decoder: Decoder | None = None,
        metadata_file: str = ".ironman.yaml",
        generators_dir: str = "generators",
        ignore: list[str] | None = None,
    ) -> None:
        self.decoder = decoder or YAMLDecoder()
        self.metadata_file = metadata_file
        self.generators_dir = generators_dir
        self.ignore = set(ignore if ignore is not None else [".git"])

    def read(self, root_path: Path) -> Template:
        """Read the template rooted at *root_path*.

        ``directory_name`` is taken from the last segment of *root_path* as
        given, so a symlinked template keeps the name of its link.

        Raises:
            ModelReadError: A declaration file is missing, cannot be decoded,
                or does not describe a valid template or generator.
        """
        root_path = Path(root_path)
        data = self._load(root_path / self.metadata_file)
        data.pop("generators", None)

        generators = []
        generators_root = root_path / self.generators_dir
        if generators_root.is_dir():
            for entry in sorted(generators_root.iterdir(), key=lambda p: p.name):
                if entry.name in self.ignore or not entry.is_dir():
                    continue
                generators.append(self._read_generator(entry))

        data["directory_name"] = root_path.name
        data["generators"] = generators
        try:
            return Template.model_validate(data)
        except ValidationError as exc:
            raise ModelReadError(
                f"Invalid template declaration {root_path / self.metadata_file}: {exc}",
                path=root_path / self.metadata_file,
            ) from exc

    def _read_generator(self, generator_path: Path) -> Generator:
        metadata_path = generator_path / self.metadata_file
        data = self._load(metadata_path)
        data["directory_name"] = generator_path.name
        try:
            return Generator.model_validate(data)
        except ValidationError as exc:
            raise ModelReadError(
                f"Invalid generator declaration {metadata_path}: {exc}",
                path=metadata_path,
            ) from exc

    def _load(self, path: Path) -> dict[str, Any]:
        try:
            raw = path.read_bytes()
        except FileNotFoundError as exc:
            raise ModelReadError(f"Declaration file not found: {path}", path=path) from exc
        except OSError as exc:
            raise ModelReadError(f"Failed to read declaration file {path}: {exc}", path=path) from exc

        try:
            data = self.decoder.decode(raw)
        except (yaml.YAMLError, ValueError) as exc:
            raise ModelReadError(f"Failed to decode {path}: {exc}", path=path) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ModelReadError(
                f"Declaration {path} must be a mapping, got {type(data).__name__}",
                path=path,
            )
        return data
