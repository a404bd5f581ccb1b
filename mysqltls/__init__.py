"""Mutual-TLS MySQL connection establishment."""

from __future__ import annotations

from .addressing import parse_host_spec
from .certificates import CertificateValidator, FileCheck, ValidationResult
from .drivers import DatabaseDriver, DriverResult, PyMySQLDriver, PyMySQLHandle
from .errors import (
    ConfigurationError,
    EstablishmentError,
    ExhaustedRetries,
    MaterialInvalid,
    NamespaceSelectError,
    PlainConnectError,
    StartupAborted,
    TransientConnectError,
    abort_startup,
)
from .establisher import ConnectionEstablisher, compute_client_flags, uses_mutual_tls
from .models import (
    DEFAULT_RETRY_POLICY,
    ClientFlag,
    ConnectionOutcome,
    ConnectionTarget,
    Credentials,
    Established,
    Failed,
    RetryPolicy,
    TlsMaterial,
)
from .session import MySQLSessionFinalizer, SessionFinalizer
from .startup import open_database

__version__ = "0.1.0"

__all__ = [
    "CertificateValidator",
    "ClientFlag",
    "ConfigurationError",
    "ConnectionEstablisher",
    "ConnectionOutcome",
    "ConnectionTarget",
    "Credentials",
    "DEFAULT_RETRY_POLICY",
    "DatabaseDriver",
    "DriverResult",
    "Established",
    "EstablishmentError",
    "ExhaustedRetries",
    "Failed",
    "FileCheck",
    "MaterialInvalid",
    "MySQLSessionFinalizer",
    "NamespaceSelectError",
    "PlainConnectError",
    "PyMySQLDriver",
    "PyMySQLHandle",
    "RetryPolicy",
    "SessionFinalizer",
    "StartupAborted",
    "TlsMaterial",
    "TransientConnectError",
    "ValidationResult",
    "abort_startup",
    "compute_client_flags",
    "open_database",
    "parse_host_spec",
    "uses_mutual_tls",
]
