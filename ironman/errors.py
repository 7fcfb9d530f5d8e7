"""Exception hierarchy for template lifecycle and generation.

Every error carries the offending template ID or path so it can be shown to
an operator without a traceback.  Compensation failures raised while rolling
back an operation are attached to the primary error through
``secondary_errors`` instead of replacing it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class IronmanError(Exception):
    """Base class for all errors raised by the package."""

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        template_id: str | None = None,
        path: str | Path | None = None,
    ) -> None:
        self.message = message
        self.template_id = template_id
        self.path = Path(path) if path is not None else None
        self.secondary_errors: list[BaseException] = []
        super().__init__(message)

    def add_secondary(self, error: BaseException, context: str) -> None:
        """Record a failure that happened while cleaning up after this error."""
        self.secondary_errors.append(error)
        self.add_note(f"{context}: {error}")


class NotFoundError(IronmanError):
    """A template ID is not indexed or an expected path is missing."""

    kind = "not_found"


class ConflictError(IronmanError):
    """Duplicate ID, occupied location, or existing generation target."""

    kind = "conflict"


class ValidationFailedError(IronmanError):
    """Template metadata was rejected by a registered validator."""

    kind = "validation_failed"

    def __init__(
        self,
        message: str,
        *,
        payload: Any = None,
        template_id: str | None = None,
        path: str | Path | None = None,
    ) -> None:
        self.payload = payload
        super().__init__(message, template_id=template_id, path=path)


class FetchFailedError(IronmanError):
    """The transport could not fetch or refresh a template."""

    kind = "fetch_failed"

    def __init__(
        self,
        message: str,
        *,
        command: str = "",
        stderr: str = "",
        template_id: str | None = None,
        path: str | Path | None = None,
    ) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message, template_id=template_id, path=path)


class PermissionDeniedError(IronmanError):
    kind = "permission_denied"


class IOFailureError(IronmanError):
    kind = "io_failure"


class InvalidTargetError(IronmanError):
    """A generation path precondition is not met."""

    kind = "invalid_target"


class ModelReadError(IronmanError):
    """A metadata declaration file is missing or cannot be decoded."""

    kind = "model_read"


class RenderError(IronmanError):
    """A generator file could not be rendered."""

    kind = "render_failed"


class OperationCancelledError(IronmanError):
    kind = "cancelled"


def wrap_os_error(
    error: OSError,
    message: str,
    *,
    template_id: str | None = None,
    path: str | Path | None = None,
) -> IronmanError:
    """Translate an ``OSError`` into the matching typed error."""
    if isinstance(error, PermissionError):
        cls: type[IronmanError] = PermissionDeniedError
    elif isinstance(error, FileNotFoundError):
        cls = NotFoundError
    elif isinstance(error, FileExistsError):
        cls = ConflictError
    else:
        cls = IOFailureError
    return cls(f"{message}: {error}", template_id=template_id, path=path)
