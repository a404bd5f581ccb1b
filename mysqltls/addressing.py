"""Host specifier parsing."""

from __future__ import annotations

from .models import ConnectionTarget

MAX_PORT = 65535


def parse_host_spec(spec: str) -> ConnectionTarget:
    """Split ``host[:port|:socket]`` on the first colon.

    A suffix made only of ASCII digits is a TCP port; any other non-empty
    suffix is a unix socket path. An empty suffix leaves both unset so the
    driver default applies.
    """

    host, sep, suffix = spec.partition(":")
    if not sep or not suffix:
        return ConnectionTarget(host=host)
    if suffix.isascii() and suffix.isdigit():
        port = int(suffix)
        if port > MAX_PORT:
            raise ValueError(f"Port out of range in host specifier '{spec}'")
        return ConnectionTarget(host=host, port=port)
    return ConnectionTarget(host=host, socket_path=suffix)


__all__ = ["parse_host_spec"]
