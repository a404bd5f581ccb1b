"""Configuration loading helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

import tomllib

from pydantic import BaseModel, Field, SecretStr

from .models import Credentials, TlsMaterial

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "mysqltls" / "config.toml"

# Environment variable -> (section, key). Section ``None`` is the database table.
ENVIRONMENT_KEYS: dict[str, tuple[str | None, str]] = {
    "DB_USER": (None, "user"),
    "DB_PASSWORD": (None, "password"),
    "DB_NAME": (None, "name"),
    "DB_HOST": (None, "host"),
    "DB_CHARSET": (None, "charset"),
    "DB_COLLATE": (None, "collate"),
    "MYSQL_CLIENT_FLAGS": (None, "client_flags"),
    "MYSQL_SSL_ABORT_ON_INVALID": (None, "abort_on_invalid_material"),
    "MYSQL_SSL_CA": ("tls", "ca"),
    "MYSQL_SSL_CERT": ("tls", "cert"),
    "MYSQL_SSL_KEY": ("tls", "key"),
    "MYSQL_SSL_CAPATH": ("tls", "capath"),
    "MYSQL_SSL_CIPHER": ("tls", "cipher"),
    "MYSQL_SSL_VERIFY_SERVER_CERT": ("tls", "verify_server_cert"),
}


class TlsConfig(BaseModel):
    """Certificate material paths and verification policy."""

    ca: str | None = None
    cert: str | None = None
    key: str | None = None
    capath: str | None = None
    cipher: str | None = None
    verify_server_cert: bool = True


class DatabaseConfig(BaseModel):
    """Shape of the ``[database]`` table plus environment overrides."""

    user: str = ""
    password: SecretStr = SecretStr("")
    name: str = ""
    host: str = "localhost"
    charset: str = "utf8mb4"
    collate: str | None = None
    client_flags: int = 0
    abort_on_invalid_material: bool = True
    tls: TlsConfig = Field(default_factory=TlsConfig)

    def credentials(self) -> Credentials:
        return Credentials(
            user=self.user,
            password=self.password.get_secret_value(),
            database=self.name,
        )

    def tls_material(self) -> TlsMaterial:
        """Build the immutable material snapshot for one establishment call."""

        return TlsMaterial(
            ca_path=self.tls.ca or None,
            cert_path=self.tls.cert or None,
            key_path=self.tls.key or None,
            ca_dir=self.tls.capath or None,
            cipher_suite=self.tls.cipher or None,
            verify_server_cert=self.tls.verify_server_cert,
        )


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> DatabaseConfig:
    """Load the config file, then apply environment overrides."""

    config_path = path or CONFIG_FILE
    try:
        data = _read_config_file(config_path)
    except FileNotFoundError:
        data = {}
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config file %s: %s", config_path, exc, extra={"path": str(config_path)})
        data = {}
    _apply_environment(data, os.environ if environ is None else environ)
    return DatabaseConfig.model_validate(data)


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    database = raw.get("database")
    if not isinstance(database, dict):
        return {}
    data: dict[str, object] = {
        key: value for key, value in database.items() if key in DatabaseConfig.model_fields and key != "tls"
    }
    tls = database.get("tls")
    if isinstance(tls, dict):
        data["tls"] = {key: value for key, value in tls.items() if key in TlsConfig.model_fields}
    return data


def _apply_environment(data: dict[str, object], environ: Mapping[str, str]) -> None:
    for variable, (section, key) in ENVIRONMENT_KEYS.items():
        value = environ.get(variable)
        if value is None:
            continue
        if section is None:
            data[key] = value
            continue
        table = data.get(section)
        if not isinstance(table, dict):
            table = {}
            data[section] = table
        table[key] = value


__all__ = [
    "CONFIG_FILE",
    "DatabaseConfig",
    "ENVIRONMENT_KEYS",
    "TlsConfig",
    "load_config",
]
