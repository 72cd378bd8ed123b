"""Database endpoint configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final
from urllib.parse import parse_qsl

from sqlalchemy.engine import URL

from .env import require_env_var
from .errors import InvalidEndpointError

MYSQL_DRIVERNAME: Final[str] = "mysql+pymysql"
DEFAULT_MYSQL_HOST: Final[str] = "127.0.0.1"
DEFAULT_MYSQL_PORT: Final[int] = 3306

# protocol(address), both optional: "tcp(db:3306)", "tcp", ""
_NET_ADDRESS = re.compile(r"^(?:(?P<protocol>\w+)(?:\((?P<address>[^)]*)\))?)?$")

# driver options that only make sense to the Go MySQL driver
_GO_ONLY_PARAMS: Final[frozenset[str]] = frozenset(
    {"parseTime", "loc", "timeout", "readTimeout", "writeTimeout", "interpolateParams"}
)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


@dataclass(frozen=True, slots=True)
class _GoDsn:
    user: str | None
    password: str | None
    protocol: str
    address: str
    database: str
    params: str


def _parse_go_dsn(dsn: str) -> _GoDsn:
    """Split ``[user[:password]@][protocol[(address)]]/dbname[?params]``.

    Splits at the last ``/`` and then the last ``@`` before it, so passwords
    may contain ``@``, ``/`` or ``:``.
    """

    slash = dsn.rfind("/")
    if slash < 0:
        raise InvalidEndpointError("DB_ENDPOINT is neither a SQLAlchemy URL nor a MySQL DSN")
    head, tail = dsn[:slash], dsn[slash + 1 :]
    database, _, params = tail.partition("?")

    credentials, at, net = head.rpartition("@")
    if not at:
        credentials, net = "", head
    user, colon, password = credentials.partition(":")

    match = _NET_ADDRESS.match(net)
    if match is None:
        raise InvalidEndpointError(f"Invalid network address in DB_ENDPOINT: {net}")
    return _GoDsn(
        user=user or None,
        password=password if colon else None,
        protocol=match["protocol"] or "tcp",
        address=match["address"] or DEFAULT_MYSQL_HOST,
        database=database,
        params=params,
    )


def database_uri_from_endpoint(endpoint: str) -> str:
    """Accept a SQLAlchemy URL as-is, or translate a Go-style MySQL DSN into one."""

    endpoint = endpoint.strip()
    if "://" in endpoint:
        return endpoint

    dsn = _parse_go_dsn(endpoint)
    if dsn.protocol != "tcp":
        raise InvalidEndpointError(f"Unsupported MySQL DSN protocol: {dsn.protocol}")

    host, port = _split_address(dsn.address)
    query = {key: value for key, value in parse_qsl(dsn.params) if key not in _GO_ONLY_PARAMS}
    url = URL.create(
        MYSQL_DRIVERNAME,
        username=dsn.user,
        password=dsn.password,
        host=host,
        port=port,
        database=dsn.database or None,
        query=query,
    )
    return url.render_as_string(hide_password=False)


def _split_address(address: str) -> tuple[str, int]:
    host, _, port = address.rpartition(":")
    if not host:
        return address, DEFAULT_MYSQL_PORT
    try:
        return host, int(port)
    except ValueError as exc:
        raise InvalidEndpointError(f"Invalid port in DB_ENDPOINT address: {address}") from exc


def get_database_config() -> DatabaseConfig:
    return DatabaseConfig(uri=database_uri_from_endpoint(require_env_var("DB_ENDPOINT")))
