"""Tests for DatabaseConfig loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from mysqltls import config as config_module
from mysqltls.config import DatabaseConfig, TlsConfig, load_config
from mysqltls.models import Credentials, TlsMaterial


def test_load_config_returns_defaults_when_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.toml")

    result = load_config(environ={})

    assert result == DatabaseConfig()
    assert result.tls_material() == TlsMaterial()


def test_load_config_reads_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
[database]
user = "wp"
password = "from-file"
name = "wordpress"
host = "db.example.com:3306"
collate = "utf8mb4_0900_ai_ci"
client_flags = 2048
unknown = "ignored"

[database.tls]
ca = "/etc/mysql/ca.pem"
cert = "/etc/mysql/client-cert.pem"
key = "/etc/mysql/client-key.pem"
cipher = "ECDHE-RSA-AES256-GCM-SHA384"
verify_server_cert = true
"""
    )

    result = load_config(config_path, environ={})

    assert result.host == "db.example.com:3306"
    assert result.client_flags == 2048
    assert result.collate == "utf8mb4_0900_ai_ci"
    assert result.credentials() == Credentials(user="wp", password="from-file", database="wordpress")
    material = result.tls_material()
    assert material.ca_path == "/etc/mysql/ca.pem"
    assert material.cipher_suite == "ECDHE-RSA-AES256-GCM-SHA384"
    assert material.verify_server_cert is True


def test_load_config_handles_toml_errors(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[database\nuser = ")

    result = load_config(config_path, environ={})

    assert result == DatabaseConfig()


def test_environment_overrides_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[database]\nuser = "file-user"\n\n[database.tls]\nca = "/file/ca.pem"\n')
    environ = {
        "DB_USER": "env-user",
        "DB_PASSWORD": "env-pw",
        "DB_HOST": "localhost:/run/mysqld/mysqld.sock",
        "MYSQL_CLIENT_FLAGS": "2048",
        "MYSQL_SSL_CERT": "/env/client-cert.pem",
        "MYSQL_SSL_VERIFY_SERVER_CERT": "false",
        "MYSQL_SSL_ABORT_ON_INVALID": "0",
    }

    result = load_config(config_path, environ=environ)

    assert result.user == "env-user"
    assert result.password.get_secret_value() == "env-pw"
    assert result.client_flags == 2048
    assert result.abort_on_invalid_material is False
    assert result.tls == TlsConfig(ca="/file/ca.pem", cert="/env/client-cert.pem", verify_server_cert=False)


def test_password_is_hidden_from_repr() -> None:
    config = DatabaseConfig(password="hunter2")

    assert "hunter2" not in repr(config)
    assert "hunter2" not in repr(config.credentials())


def test_empty_paths_are_treated_as_unset() -> None:
    config = DatabaseConfig(tls=TlsConfig(ca="", cert="", key=""))

    assert config.tls_material().configured is False
