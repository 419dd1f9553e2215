import os
import ssl
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

DATABASE_URL = os.getenv("DATABASE_URL", "")

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required.")


def _normalise_url(url: str):
    """Return an async driver URL plus the connect_args it needs.

    Hosted Postgres strings arrive as postgresql:// with sslmode and
    channel_binding query params that asyncpg rejects, so those are stripped
    and SSL is handed over through connect_args. Any other URL is assumed to
    already name an async driver.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("postgres", "postgresql"):
        return url, {}

    query_params = parse_qs(parsed.query)
    needs_ssl = query_params.pop("sslmode", [None])[0] == "require"
    query_params.pop("channel_binding", None)

    clean_query = urlencode(query_params, doseq=True)
    url = urlunparse(parsed._replace(scheme="postgresql+asyncpg", query=clean_query))
    connect_args = {"ssl": ssl.create_default_context()} if needs_ssl else {}
    return url, connect_args


DATABASE_URL, connect_args = _normalise_url(DATABASE_URL)

engine = create_async_engine(
    DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=connect_args
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass
