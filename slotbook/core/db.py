from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from slotbook.core.config import Settings


def to_async_url(database_url: str) -> tuple[str, dict]:
    """Map a plain database URL onto its asyncio driver and return (url, connect_args)."""
    parsed = urlparse(database_url)
    if parsed.scheme == "sqlite":
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1), {"check_same_thread": False}
    if parsed.scheme.startswith("sqlite+"):
        return database_url, {"check_same_thread": False}
    # asyncpg does not accept psycopg params like sslmode/channel_binding.
    # Convert scheme and strip incompatible query params; SSL is enabled via connect_args.
    scheme = "postgresql+asyncpg" if parsed.scheme in ("postgresql", "postgres") else parsed.scheme
    query = parse_qs(parsed.query, keep_blank_values=True)
    sslmode = query.pop("sslmode", [None])[0]
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    url = urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))
    connect_args = {"ssl": True} if sslmode in ("require", "verify-ca", "verify-full") else {}
    return url, connect_args


class Database:
    """Owns the async engine and session factory for one application instance."""

    def __init__(self, settings: Settings) -> None:
        url, connect_args = to_async_url(settings.database_url)
        engine_kwargs: dict = {"echo": settings.env == "development", "connect_args": connect_args}
        if url.startswith("sqlite"):
            if ":memory:" in url or url.rstrip("/").endswith("aiosqlite:"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create tables if using create_all; prefer Alembic in production."""
        # Register tables on SQLModel.metadata
        import slotbook.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
