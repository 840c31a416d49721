"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without an alembic context.
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote_plus, urlparse, urlunparse

_DRIVER_PREFIX = "postgresql+psycopg2://"

# key=value pairs; values may be single-quoted with backslash escapes
_DSN_PAIR = re.compile(r"(\w+)\s*=\s*('(?:[^'\\]|\\.)*'|\S*)")
_ESCAPE = re.compile(r"\\(.)")


def parse_libpq_dsn(dsn: str) -> dict[str, str]:
    """Parse a libpq ``key=value`` DSN into a dict."""
    params: dict[str, str] = {}
    for key, raw in _DSN_PAIR.findall(dsn):
        if raw.startswith("'") and raw.endswith("'") and len(raw) >= 2:
            raw = _ESCAPE.sub(r"\1", raw[1:-1])
        params[key] = raw
    return params


def libpq_dsn_to_url(dsn: str) -> str:
    """Convert a libpq DSN to a SQLAlchemy URL.

    ``host=/path`` (Unix socket, e.g. Cloud SQL) becomes a ``?host=`` query
    parameter; any other host becomes ``host:port``. DB_PASSWORD fills in a
    missing password.
    """
    params = parse_libpq_dsn(dsn)
    password = params.get("password") or os.environ.get("DB_PASSWORD", "")

    credentials = f"{quote_plus(params.get('user', ''))}:{quote_plus(password)}"
    dbname = quote_plus(params.get("dbname", ""))
    host = params.get("host", "localhost")

    if host.startswith("/"):
        return f"{_DRIVER_PREFIX}{credentials}@/{dbname}?host={quote_plus(host)}"
    return f"{_DRIVER_PREFIX}{credentials}@{host}:{params.get('port', '5432')}/{dbname}"


def _with_password(url: str, password: str) -> str:
    parsed = urlparse(url)
    if parsed.password:
        return url
    netloc = f"{quote_plus(parsed.username or '')}:{quote_plus(password)}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


def get_database_url() -> str:
    """SQLAlchemy URL from DATABASE_URL (URL or libpq DSN).

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" not in url:
        return libpq_dsn_to_url(url)

    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            url = _DRIVER_PREFIX + url[len(scheme):]
            break

    db_password = os.environ.get("DB_PASSWORD", "")
    return _with_password(url, db_password) if db_password else url
