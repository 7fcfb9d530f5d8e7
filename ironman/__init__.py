"""Ironman -- install templates and generate files and directories from them."""

from ironman.config import IronmanConfig
from ironman.errors import (
    ConflictError,
    FetchFailedError,
    InvalidTargetError,
    IOFailureError,
    IronmanError,
    ModelReadError,
    NotFoundError,
    OperationCancelledError,
    PermissionDeniedError,
    RenderError,
    ValidationFailedError,
)
from ironman.ironman import Inconsistency, Ironman

__all__ = [
    "ConflictError",
    "FetchFailedError",
    "IOFailureError",
    "Inconsistency",
    "InvalidTargetError",
    "Ironman",
    "IronmanConfig",
    "IronmanError",
    "ModelReadError",
    "NotFoundError",
    "OperationCancelledError",
    "PermissionDeniedError",
    "RenderError",
    "ValidationFailedError",
]
