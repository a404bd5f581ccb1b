"""Database driver capability set and the pymysql adapter."""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import pymysql
from pymysql.constants import CLIENT

from .models import ClientFlag, ConnectionTarget, Credentials, TlsMaterial

LOG = logging.getLogger(__name__)

DEFAULT_PORT = 3306


@dataclass(frozen=True, slots=True)
class DriverResult:
    """Return value of every driver primitive; drivers never raise."""

    ok: bool
    handle: Any = None
    error: str | None = None

    @classmethod
    def success(cls, handle: Any = None) -> DriverResult:
        return cls(ok=True, handle=handle)

    @classmethod
    def failure(cls, error: str) -> DriverResult:
        return cls(ok=False, error=error)


@runtime_checkable
class DatabaseDriver(Protocol):
    """Protocol implemented by driver adapters."""

    def init_tls_handle(self) -> DriverResult:
        """Create a TLS-capable handle that is not yet connected."""

    def attach_tls(self, handle: Any, material: TlsMaterial, client_flags: int) -> DriverResult:
        """Attach CA/cert/key/cipher material and client flags to the handle."""

    def real_connect(
        self,
        handle: Any,
        credentials: Credentials,
        target: ConnectionTarget,
        client_flags: int,
    ) -> DriverResult:
        """Open the network connection on a prepared handle (blocking)."""

    def select_namespace(self, handle: Any, name: str) -> DriverResult:
        """Select the working database on a live handle."""

    def plain_connect(
        self,
        credentials: Credentials,
        target: ConnectionTarget,
        client_flags: int,
    ) -> DriverResult:
        """Connect without TLS; the result handle is ready to use."""

    def close(self, handle: Any) -> None:
        """Release the handle."""


@dataclass(slots=True)
class PyMySQLHandle:
    """Mutable holder for a pymysql connection and its pending TLS context."""

    ssl_context: ssl.SSLContext | None = None
    client_flags: int = 0
    connection: pymysql.connections.Connection | None = field(default=None, repr=False)

    @property
    def connected(self) -> bool:
        return self.connection is not None and bool(self.connection.open)


class PyMySQLDriver:
    """Driver adapter that talks to MySQL via pymysql."""

    def __init__(self, *, connect_timeout: float = 10.0, charset: str = "utf8mb4") -> None:
        self._connect_timeout = connect_timeout
        self._charset = charset

    def init_tls_handle(self) -> DriverResult:
        if not ssl.HAS_TLSv1_2:  # pragma: no cover - depends on the OpenSSL build
            return DriverResult.failure("TLS support unavailable in the ssl module")
        return DriverResult.success(PyMySQLHandle())

    def attach_tls(self, handle: PyMySQLHandle, material: TlsMaterial, client_flags: int) -> DriverResult:
        skip_verify = bool(client_flags & ClientFlag.SSL_DONT_VERIFY_SERVER_CERT)
        try:
            context = ssl.create_default_context(cafile=material.ca_path, capath=material.ca_dir)
            if skip_verify:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            if material.cert_path:
                context.load_cert_chain(material.cert_path, keyfile=material.key_path)
            if material.cipher_suite:
                context.set_ciphers(material.cipher_suite)
        except (ssl.SSLError, OSError, ValueError) as exc:
            return DriverResult.failure(f"Invalid TLS material: {exc}")
        handle.ssl_context = context
        handle.client_flags = client_flags
        return DriverResult.success(handle)

    def real_connect(
        self,
        handle: PyMySQLHandle,
        credentials: Credentials,
        target: ConnectionTarget,
        client_flags: int,
    ) -> DriverResult:
        try:
            handle.connection = pymysql.connect(
                ssl=handle.ssl_context,
                client_flag=_wire_flags(client_flags),
                **self._connect_kwargs(credentials, target),
            )
        except (pymysql.MySQLError, OSError) as exc:
            return DriverResult.failure(str(exc))
        if not _tls_negotiated(handle.connection):
            self.close(handle)
            return DriverResult.failure("Server did not negotiate TLS; refusing a plaintext session")
        return DriverResult.success(handle)

    def select_namespace(self, handle: PyMySQLHandle, name: str) -> DriverResult:
        if handle.connection is None:
            return DriverResult.failure("Connection is not open")
        try:
            handle.connection.select_db(name)
        except pymysql.MySQLError as exc:
            return DriverResult.failure(str(exc))
        return DriverResult.success(handle)

    def plain_connect(
        self,
        credentials: Credentials,
        target: ConnectionTarget,
        client_flags: int,
    ) -> DriverResult:
        kwargs = self._connect_kwargs(credentials, target)
        if credentials.database:
            kwargs["database"] = credentials.database
        try:
            connection = pymysql.connect(client_flag=_wire_flags(client_flags), **kwargs)
        except (pymysql.MySQLError, OSError) as exc:
            return DriverResult.failure(str(exc))
        return DriverResult.success(PyMySQLHandle(client_flags=client_flags, connection=connection))

    def close(self, handle: PyMySQLHandle) -> None:
        connection = handle.connection
        handle.connection = None
        if connection is None or not connection.open:
            return
        try:
            connection.close()
        except pymysql.MySQLError:  # pragma: no cover - best effort cleanup
            LOG.debug("Ignoring error while closing connection", exc_info=True)

    def _connect_kwargs(self, credentials: Credentials, target: ConnectionTarget) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "host": target.host or "localhost",
            "user": credentials.user,
            "password": credentials.password,
            "charset": self._charset,
            "connect_timeout": self._connect_timeout,
        }
        if target.socket_path:
            kwargs["unix_socket"] = target.socket_path
        else:
            kwargs["port"] = target.port or DEFAULT_PORT
        return kwargs


def _tls_negotiated(connection: pymysql.connections.Connection) -> bool:
    if isinstance(getattr(connection, "_sock", None), ssl.SSLSocket):
        return True
    return bool(connection.server_capabilities & CLIENT.SSL)


def _wire_flags(client_flags: int) -> int:
    return int(client_flags) & ~int(ClientFlag.SSL_DONT_VERIFY_SERVER_CERT)


__all__ = [
    "DEFAULT_PORT",
    "DatabaseDriver",
    "DriverResult",
    "PyMySQLDriver",
    "PyMySQLHandle",
]
