"""Database engine and per-request sessions for the OKR store."""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import settings

_DRIVER = "postgresql+psycopg"
_LOCAL_HOSTS = ("localhost", "127.0.0.1")


def _normalise_url(url: str) -> str:
    """Rewrite postgres:// and postgresql:// URLs for the psycopg async driver.

    Remote hosts get sslmode=require unless the URL already sets an sslmode.
    """
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            url = f"{_DRIVER}://" + url[len(prefix):]
            break

    parsed = make_url(url)
    if parsed.host and parsed.host not in _LOCAL_HOSTS and "sslmode" not in parsed.query:
        parsed = parsed.update_query_dict({"sslmode": "require"})
    return parsed.render_as_string(hide_password=False)


engine = create_async_engine(_normalise_url(settings.database_url), echo=False)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:
    """FastAPI dependency: one session per request."""
    async with async_session() as session:
        yield session
