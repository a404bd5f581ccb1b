"""Shared dataclasses used across the validator, driver, and establisher modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from typing import TYPE_CHECKING, Any, Union

from pymysql.constants import CLIENT

if TYPE_CHECKING:
    from .errors import EstablishmentError


class ClientFlag(IntFlag):
    """Client capability bits understood by the establisher."""

    SSL = CLIENT.SSL
    # Local instruction for the driver adapter; stripped before the handshake.
    SSL_DONT_VERIFY_SERVER_CERT = 64


@dataclass(frozen=True, slots=True)
class Credentials:
    """Login details for one establishment call."""

    user: str
    password: str = field(default="", repr=False)
    database: str = ""


@dataclass(frozen=True, slots=True)
class ConnectionTarget:
    """Where to connect: TCP port, unix socket, or the driver default."""

    host: str
    port: int | None = None
    socket_path: str | None = None


@dataclass(frozen=True, slots=True)
class TlsMaterial:
    """Certificate material and verification policy for mutual TLS."""

    ca_path: str | None = None
    cert_path: str | None = None
    key_path: str | None = None
    ca_dir: str | None = None
    cipher_suite: str | None = None
    verify_server_cert: bool = True

    @property
    def configured(self) -> bool:
        """True when any of the CA, certificate, or key paths is set."""

        return bool(self.ca_path or self.cert_path or self.key_path)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt bound and linear backoff between connect attempts."""

    max_attempts: int = 4
    backoff_unit_ms: int = 100

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after the 0-indexed ``attempt`` failed."""

        return self.backoff_unit_ms * (attempt + 1) / 1000


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True, slots=True)
class Established:
    """Live connection handle ready for use."""

    handle: Any
    attempts_made: int


@dataclass(frozen=True, slots=True)
class Failed:
    """Terminal failure returned when hard-fail is not requested."""

    reason: str
    attempts_made: int
    error: EstablishmentError | None = None


ConnectionOutcome = Union[Established, Failed]


__all__ = [
    "ClientFlag",
    "ConnectionOutcome",
    "ConnectionTarget",
    "Credentials",
    "DEFAULT_RETRY_POLICY",
    "Established",
    "Failed",
    "RetryPolicy",
    "TlsMaterial",
]
