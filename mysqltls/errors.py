"""Error taxonomy for connection establishment."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, NoReturn

if TYPE_CHECKING:
    from .certificates import ValidationResult

LOG = logging.getLogger(__name__)

AbortHandler = Callable[[str], None]


class EstablishmentError(RuntimeError):
    """Base class for terminal establishment failures."""


class ConfigurationError(EstablishmentError):
    """Raised when the TLS driver handle cannot be initialized or configured."""


class MaterialInvalid(EstablishmentError):
    """Raised when configured certificate, key, or CA files are unusable."""

    def __init__(self, message: str, validation: ValidationResult) -> None:
        super().__init__(message)
        self.validation = validation


class TransientConnectError(EstablishmentError):
    """A single failed connect attempt; absorbed by the retry loop."""

    def __init__(self, message: str, attempt: int) -> None:
        super().__init__(message)
        self.attempt = attempt


class ExhaustedRetries(EstablishmentError):
    """Raised when every connect attempt failed."""

    def __init__(self, last_error: str, attempts: int) -> None:
        super().__init__(last_error)
        self.last_error = last_error
        self.attempts = attempts


class NamespaceSelectError(EstablishmentError):
    """Raised when the connection is up but the database cannot be selected."""


class PlainConnectError(EstablishmentError):
    """Raised when the non-TLS fallback connection fails."""


class StartupAborted(RuntimeError):
    """Raised after the abort primitive ran for a hard-fail establishment."""


def abort_startup(message: str) -> NoReturn:
    """Default abort primitive: database connectivity is mandatory at startup."""

    LOG.critical("Aborting startup: %s", message)
    raise SystemExit(message)


__all__ = [
    "AbortHandler",
    "ConfigurationError",
    "EstablishmentError",
    "ExhaustedRetries",
    "MaterialInvalid",
    "NamespaceSelectError",
    "PlainConnectError",
    "StartupAborted",
    "TransientConnectError",
    "abort_startup",
]
