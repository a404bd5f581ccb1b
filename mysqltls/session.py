"""Session-level settings applied once a connection is established."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence, runtime_checkable

import pymysql

from .drivers import PyMySQLHandle

LOG = logging.getLogger(__name__)

STRICT_SQL_MODES: tuple[str, ...] = (
    "STRICT_TRANS_TABLES",
    "NO_ZERO_IN_DATE",
    "NO_ZERO_DATE",
    "ERROR_FOR_DIVISION_BY_ZERO",
    "NO_ENGINE_SUBSTITUTION",
)


@runtime_checkable
class SessionFinalizer(Protocol):
    """Host collaborator that prepares a live handle for use."""

    def finalize(self, handle: object) -> None:
        """Apply session settings to the handle."""


class MySQLSessionFinalizer:
    """Sets the character set and a strict ``sql_mode`` on a pymysql session."""

    def __init__(
        self,
        charset: str = "utf8mb4",
        collation: str | None = None,
        sql_modes: Sequence[str] = STRICT_SQL_MODES,
    ) -> None:
        self._charset = charset
        self._collation = collation
        self._sql_modes = tuple(sql_modes)

    @property
    def sql_mode(self) -> str:
        return ",".join(self._sql_modes)

    def finalize(self, handle: PyMySQLHandle) -> None:
        connection = handle.connection
        if connection is None:
            raise ValueError("Cannot finalize a handle without an open connection.")
        try:
            connection.set_character_set(self._charset, self._collation)
        except pymysql.MySQLError as exc:
            LOG.warning("Could not set character set %s: %s", self._charset, exc, extra={"charset": self._charset})
        if not self._sql_modes:
            return
        try:
            with connection.cursor() as cursor:
                cursor.execute("SET SESSION sql_mode = %s", (self.sql_mode,))
        except pymysql.MySQLError as exc:
            LOG.warning("Could not set sql_mode: %s", exc, extra={"sql_mode": self.sql_mode})


__all__ = ["MySQLSessionFinalizer", "STRICT_SQL_MODES", "SessionFinalizer"]
