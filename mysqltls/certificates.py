"""Pre-flight checks for certificate, key, and CA files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

LOG = logging.getLogger(__name__)

_ROLE_LABELS = {
    "ca": "SSL CA file",
    "cert": "SSL certificate file",
    "key": "SSL key file",
}


@dataclass(frozen=True, slots=True)
class FileCheck:
    """Outcome of checking one configured path."""

    role: str
    path: str
    exists_and_readable: bool
    problem: str | None = None


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Aggregated checks for the configured material paths."""

    checks: tuple[FileCheck, ...] = ()

    @property
    def passed(self) -> bool:
        return all(check.exists_and_readable for check in self.checks)

    @property
    def flagged(self) -> tuple[str, ...]:
        """Roles (``ca``, ``cert``, ``key``) whose files failed the check."""

        return tuple(check.role for check in self.checks if not check.exists_and_readable)

    @property
    def problems(self) -> tuple[str, ...]:
        return tuple(check.problem for check in self.checks if check.problem)


class CertificateValidator:
    """Confirms material files exist and are readable before a handshake.

    File contents are never opened; the TLS library judges the X.509 data
    itself when the driver builds its context.
    """

    def validate(
        self,
        ca_path: str | None,
        cert_path: str | None,
        key_path: str | None,
    ) -> ValidationResult:
        checks: list[FileCheck] = []
        for role, path in (("ca", ca_path), ("cert", cert_path), ("key", key_path)):
            if not path:
                continue
            check = self._check(role, path)
            if not check.exists_and_readable:
                LOG.warning(check.problem, extra={"role": role, "path": path})
            checks.append(check)
        return ValidationResult(checks=tuple(checks))

    @staticmethod
    def _check(role: str, path: str) -> FileCheck:
        label = _ROLE_LABELS[role]
        candidate = Path(path)
        if not candidate.exists():
            reason = "not found"
        elif not candidate.is_file():
            reason = "not a regular file"
        elif not os.access(candidate, os.R_OK):
            reason = "not readable"
        else:
            return FileCheck(role=role, path=path, exists_and_readable=True)
        return FileCheck(
            role=role,
            path=path,
            exists_and_readable=False,
            problem=f"{label} {reason}: {path}",
        )


__all__ = ["CertificateValidator", "FileCheck", "ValidationResult"]
