"""Tests for open_database and the module entrypoint."""

from __future__ import annotations

from pathlib import Path

import pytest

from mysqltls import __main__ as cli
from mysqltls.config import ENVIRONMENT_KEYS, DatabaseConfig, TlsConfig
from mysqltls.drivers import DriverResult, PyMySQLHandle
from mysqltls.errors import StartupAborted
from mysqltls.models import Established, Failed, RetryPolicy
from mysqltls.startup import open_database


class _ConnectionStub:
    def __init__(self) -> None:
        self.charsets: list[tuple[str, str | None]] = []
        self.closed = False

    def set_character_set(self, charset: str, collation: str | None = None) -> None:
        self.charsets.append((charset, collation))

    def cursor(self):  # type: ignore[no-untyped-def]
        return _CursorStub()

    def close(self) -> None:
        self.closed = True


class _CursorStub:
    def __enter__(self) -> "_CursorStub":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def execute(self, sql: str, params: object = None) -> None:
        return None


class _DriverStub:
    def __init__(self, *, connect_error: str | None = None) -> None:
        self.connect_error = connect_error
        self.calls: list[str] = []
        self.databases: list[str] = []

    def init_tls_handle(self) -> DriverResult:
        self.calls.append("init")
        return DriverResult.success(PyMySQLHandle())

    def attach_tls(self, handle, material, client_flags):  # type: ignore[no-untyped-def]
        self.calls.append("attach")
        return DriverResult.success(handle)

    def real_connect(self, handle, credentials, target, client_flags):  # type: ignore[no-untyped-def]
        self.calls.append("connect")
        if self.connect_error:
            return DriverResult.failure(self.connect_error)
        handle.connection = _ConnectionStub()
        return DriverResult.success(handle)

    def select_namespace(self, handle, name):  # type: ignore[no-untyped-def]
        self.calls.append(f"select:{name}")
        return DriverResult.success(handle)

    def plain_connect(self, credentials, target, client_flags):  # type: ignore[no-untyped-def]
        self.calls.append("plain")
        self.databases.append(credentials.database)
        return DriverResult.success(PyMySQLHandle(connection=_ConnectionStub()))  # type: ignore[arg-type]

    def close(self, handle) -> None:  # type: ignore[no-untyped-def]
        self.calls.append("close")


def _tls_config(tmp_path: Path) -> DatabaseConfig:
    ca = tmp_path / "ca.pem"
    ca.write_text("pem")
    return DatabaseConfig(
        user="wp",
        password="pw",
        name="wordpress",
        host="db:3306",
        collate="utf8mb4_0900_ai_ci",
        tls=TlsConfig(ca=str(ca)),
    )


def test_open_database_runs_tls_path_and_finalizes(tmp_path: Path) -> None:
    driver = _DriverStub()

    outcome = open_database(config=_tls_config(tmp_path), driver=driver)

    assert isinstance(outcome, Established)
    assert driver.calls == ["init", "attach", "connect", "select:wordpress"]
    assert outcome.handle.connection.charsets == [("utf8mb4", "utf8mb4_0900_ai_ci")]


def test_open_database_falls_back_to_plain() -> None:
    driver = _DriverStub()

    outcome = open_database(config=DatabaseConfig(user="wp", name="wordpress"), driver=driver)

    assert isinstance(outcome, Established)
    assert driver.calls == ["plain"]
    assert outcome.handle.connection.charsets == [("utf8mb4", None)]


def test_open_database_hard_fails_by_default(tmp_path: Path) -> None:
    driver = _DriverStub(connect_error="refused")
    messages: list[str] = []

    with pytest.raises(StartupAborted):
        open_database(
            config=_tls_config(tmp_path),
            driver=driver,
            abort=messages.append,
            retry_policy=RetryPolicy(max_attempts=1),
        )

    assert messages == ["Error establishing a database connection: refused"]


def test_open_database_soft_fail_returns_failure(tmp_path: Path) -> None:
    outcome = open_database(
        config=_tls_config(tmp_path),
        driver=_DriverStub(connect_error="refused"),
        allow_hard_fail=False,
        retry_policy=RetryPolicy(max_attempts=1),
    )

    assert isinstance(outcome, Failed)
    assert outcome.attempts_made == 1


def test_open_database_rereads_config_each_call(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[database]\nname = "first"\n')
    for variable in ENVIRONMENT_KEYS:
        monkeypatch.delenv(variable, raising=False)
    driver = _DriverStub()

    open_database(config_path=config_path, driver=driver, allow_hard_fail=False)
    config_path.write_text('[database]\nname = "second"\n')
    open_database(config_path=config_path, driver=driver, allow_hard_fail=False)

    assert driver.calls == ["plain", "plain"]
    assert driver.databases == ["first", "second"]


def test_main_reports_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    def _fake_open(**kwargs):  # type: ignore[no-untyped-def]
        assert kwargs["allow_hard_fail"] is False
        return Failed(reason="refused", attempts_made=4)

    monkeypatch.setattr(cli, "open_database", _fake_open)

    code = cli.main(["--soft-fail", "--config", str(tmp_path / "config.toml")])

    assert code == 1
    assert "Connection failed: refused" in capsys.readouterr().out


def test_main_reports_success(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    connection = _ConnectionStub()

    def _fake_open(**kwargs):  # type: ignore[no-untyped-def]
        assert kwargs["allow_hard_fail"] is True
        return Established(handle=PyMySQLHandle(connection=connection), attempts_made=2)  # type: ignore[arg-type]

    monkeypatch.setattr(cli, "open_database", _fake_open)

    code = cli.main([])

    assert code == 0
    assert "Connected (attempts: 2)" in capsys.readouterr().out
    assert connection.closed is True

