"""Mutual-TLS connection establishment with bounded retry and plain fallback."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .addressing import parse_host_spec
from .certificates import CertificateValidator
from .drivers import DatabaseDriver
from .errors import (
    AbortHandler,
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
from .session import SessionFinalizer

LOG = logging.getLogger(__name__)

_REDACTED = "***"


def uses_mutual_tls(material: TlsMaterial, client_flags: int) -> bool:
    """Mutual TLS applies when material is configured or the SSL bit is set."""

    return material.configured or bool(client_flags & ClientFlag.SSL)


def compute_client_flags(base_flags: int, material: TlsMaterial) -> ClientFlag:
    """Base flags plus SSL; skip-verification only on an explicit opt-out."""

    flags = ClientFlag(int(base_flags) & ~int(ClientFlag.SSL_DONT_VERIFY_SERVER_CERT)) | ClientFlag.SSL
    if material.verify_server_cert is False:
        flags |= ClientFlag.SSL_DONT_VERIFY_SERVER_CERT
        LOG.warning(
            "Server certificate verification disabled. "
            "This is not recommended for production environments."
        )
    return flags


class ConnectionEstablisher:
    """Runs one establishment per :meth:`connect` call.

    The driver, validator, session finalizer, abort primitive, and sleep
    function are all injected. No state is carried between calls.
    """

    def __init__(
        self,
        driver: DatabaseDriver,
        *,
        validator: CertificateValidator | None = None,
        finalizer: SessionFinalizer | None = None,
        abort: AbortHandler = abort_startup,
        sleep: Callable[[float], None] = time.sleep,
        abort_on_invalid_material: bool = True,
    ) -> None:
        self._driver = driver
        self._validator = validator or CertificateValidator()
        self._finalizer = finalizer
        self._abort = abort
        self._sleep = sleep
        self._abort_on_invalid_material = abort_on_invalid_material

    def connect(
        self,
        credentials: Credentials,
        target_spec: str,
        tls_material: TlsMaterial,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        *,
        client_flags: int = 0,
        allow_hard_fail: bool = False,
    ) -> ConnectionOutcome:
        """Establish a connection or report why it could not be established.

        With ``allow_hard_fail`` a terminal failure calls the abort primitive
        and raises :class:`StartupAborted` instead of returning ``Failed``.
        """

        scrub = _scrubber(credentials.password)
        try:
            target = parse_host_spec(target_spec)
        except ValueError as exc:
            return self._fail(ConfigurationError(str(exc)), 0, allow_hard_fail)
        if not uses_mutual_tls(tls_material, client_flags):
            return self._connect_plain(credentials, target, client_flags, allow_hard_fail, scrub)

        init = self._driver.init_tls_handle()
        if not init.ok:
            error = ConfigurationError(f"TLS driver handle failed to initialize: {scrub(init.error)}")
            return self._fail(error, 0, allow_hard_fail)
        handle = init.handle

        validation = self._validator.validate(
            tls_material.ca_path,
            tls_material.cert_path,
            tls_material.key_path,
        )
        if not validation.passed:
            if self._abort_on_invalid_material:
                self._driver.close(handle)
                error = MaterialInvalid(
                    "SSL certificate files not found or not readable: " + "; ".join(validation.problems),
                    validation,
                )
                return self._fail(error, 0, allow_hard_fail)
            LOG.warning(
                "Continuing with invalid TLS material: %s",
                ", ".join(validation.flagged),
                extra={"flagged": validation.flagged},
            )

        flags = compute_client_flags(client_flags, tls_material)

        attached = self._driver.attach_tls(handle, tls_material, flags)
        if not attached.ok:
            self._driver.close(handle)
            error = ConfigurationError(f"Could not apply TLS material: {scrub(attached.error)}")
            return self._fail(error, 0, allow_hard_fail)

        attempts, last_error = self._attempt_connection(handle, credentials, target, flags, retry_policy, scrub)
        if last_error is not None:
            self._driver.close(handle)
            return self._fail(ExhaustedRetries(last_error, attempts), attempts, allow_hard_fail)

        if credentials.database:
            selected = self._driver.select_namespace(handle, credentials.database)
            if not selected.ok:
                self._driver.close(handle)
                error = NamespaceSelectError(
                    f"Cannot select database: {credentials.database} ({scrub(selected.error)})"
                )
                return self._fail(error, attempts, allow_hard_fail)

        if self._finalizer is not None:
            self._finalizer.finalize(handle)
        return Established(handle=handle, attempts_made=attempts)

    def _attempt_connection(
        self,
        handle: Any,
        credentials: Credentials,
        target: ConnectionTarget,
        flags: int,
        policy: RetryPolicy,
        scrub: Callable[[str | None], str],
    ) -> tuple[int, str | None]:
        """Return the attempts made and the last error, ``None`` on success."""

        last_error: str | None = "No connection attempt was made"
        attempts = 0
        for attempt in range(policy.max_attempts):
            attempts = attempt + 1
            result = self._driver.real_connect(handle, credentials, target, flags)
            if result.ok:
                if attempt > 0:
                    LOG.info(
                        "Database connection succeeded on retry attempt %d",
                        attempt,
                        extra={"attempt": attempts},
                    )
                return attempts, None
            last_error = scrub(result.error)
            failure = TransientConnectError(last_error, attempts)
            LOG.warning(
                "Database connection attempt %d failed: %s",
                attempts,
                last_error,
                extra={"attempt": attempts, "failure": failure},
            )
            if attempts < policy.max_attempts:
                self._sleep(policy.delay_after(attempt))
        return attempts, last_error

    def _connect_plain(
        self,
        credentials: Credentials,
        target: ConnectionTarget,
        client_flags: int,
        allow_hard_fail: bool,
        scrub: Callable[[str | None], str],
    ) -> ConnectionOutcome:
        result = self._driver.plain_connect(credentials, target, client_flags)
        if result.ok:
            if self._finalizer is not None:
                self._finalizer.finalize(result.handle)
            return Established(handle=result.handle, attempts_made=1)
        return self._fail(PlainConnectError(scrub(result.error)), 1, allow_hard_fail)

    def _fail(self, error: EstablishmentError, attempts: int, allow_hard_fail: bool) -> Failed:
        reason = str(error)
        LOG.error(
            "Error establishing a database connection: %s",
            reason,
            extra={"error_type": type(error).__name__, "attempts": attempts},
        )
        if allow_hard_fail:
            message = f"Error establishing a database connection: {reason}"
            self._abort(message)
            raise StartupAborted(message) from error
        return Failed(reason=reason, attempts_made=attempts, error=error)


def _scrubber(password: str) -> Callable[[str | None], str]:
    def _scrub(text: str | None) -> str:
        text = text or "unknown error"
        if password:
            text = text.replace(password, _REDACTED)
        return text

    return _scrub


__all__ = ["ConnectionEstablisher", "compute_client_flags", "uses_mutual_tls"]
