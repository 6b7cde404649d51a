import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import Settings
from .base import Base
from .errors import StorageUnavailableError

log = logging.getLogger(__name__)

def _sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
        if self.engine.dialect.name == "sqlite":
            # SQLite ignores ON DELETE rules unless asked per connection
            event.listen(self.engine.sync_engine, "connect", _sqlite_foreign_keys)
        self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)

    async def init_models(self):
        # In "create_all" mode the app owns the schema; otherwise migrations do.
        if self.settings.DB_MANAGE == "create_all":
            # register every table on Base.metadata
            from assetvault.modules.users import models as _users  # noqa: F401
            from assetvault.modules.assets import models as _assets  # noqa: F401
            from assetvault.modules.audit import models as _audit  # noqa: F401
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            log.info("Ledger schema ensured (create_all)")

    async def dispose(self):
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.sessionmaker() as s:
            yield s


async def get_session(request: Request):
    async with request.app.state.db.session() as session:
        yield session


@asynccontextmanager
async def ledger_guard(session: AsyncSession, action: str):
    """Roll back and surface any ledger failure as ``StorageUnavailableError``."""
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        log.error(f"Ledger failure during {action}: {exc!r}")
        try:
            await session.rollback()
        except (SQLAlchemyError, OSError):
            log.exception(f"Rollback failed after {action}")
        raise StorageUnavailableError(f"Ledger unavailable while trying to {action}") from exc
