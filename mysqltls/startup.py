"""Explicit construction of a database connection at process start."""

from __future__ import annotations

from pathlib import Path

from .config import DatabaseConfig, load_config
from .drivers import DatabaseDriver, PyMySQLDriver
from .errors import AbortHandler, abort_startup
from .establisher import ConnectionEstablisher
from .models import DEFAULT_RETRY_POLICY, ConnectionOutcome, RetryPolicy
from .session import MySQLSessionFinalizer


def open_database(
    *,
    config: DatabaseConfig | None = None,
    config_path: Path | None = None,
    driver: DatabaseDriver | None = None,
    retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    allow_hard_fail: bool = True,
    abort: AbortHandler = abort_startup,
) -> ConnectionOutcome:
    """Read configuration afresh and run one establishment.

    The caller owns the returned handle; nothing is cached between calls.
    """

    config = config or load_config(config_path)
    establisher = ConnectionEstablisher(
        driver or PyMySQLDriver(charset=config.charset),
        finalizer=MySQLSessionFinalizer(charset=config.charset, collation=config.collate),
        abort=abort,
        abort_on_invalid_material=config.abort_on_invalid_material,
    )
    return establisher.connect(
        config.credentials(),
        config.host,
        config.tls_material(),
        retry_policy,
        client_flags=config.client_flags,
        allow_hard_fail=allow_hard_fail,
    )


__all__ = ["open_database"]
