import logging
from typing import Any, Union, List

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
)
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import text
from sqlalchemy.engine import Result

from .schemas import Base
from .settings import settings

logger = logging.getLogger(__name__)


class AsyncDbEngine:
    def __init__(self, url: str | None = None, **engine_kwargs):

        self.url = url or settings.url
        engine_kwargs.setdefault("echo", settings.DB_ECHO)
        if not self.url.startswith("sqlite"):
            engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine = create_async_engine(self.url, **engine_kwargs)

        self._session_factory = sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def create_session(self) -> AsyncSession:
        """
        Returns a new AsyncSession (no transaction opened yet).
        Usage:
            async with db_engine.create_session() as session:
                ... await session.execute(...) ...
        """
        return self._session_factory()

    async def request(
        self,
        db_request: Union[str, Any],
    ) -> List:
        """
        Runs an arbitrary statement (for example text("SELECT ...")) in its own
        transaction and returns fetchall() of the result.
        """

        async with self.create_session() as session:

            async with session.begin():
                result: Result = await session.execute(db_request)
                return result.fetchall()

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def dispose(self) -> None:
        await self.engine.dispose()


async def db_engine_check(db_engine: AsyncDbEngine):
    """
    Connectivity check: runs a trivial query and logs the server version where available.
    """
    logger.info(f"Connecting to database {db_engine.engine.url.render_as_string(hide_password=True)}")
    if db_engine.dialect_name == "sqlite":
        query = text("SELECT sqlite_version();")
    else:
        query = text("SELECT version();")
    try:
        version_row = await db_engine.request(query)
    except Exception as e:
        logger.error(f"Error connecting to database: {e}")
        raise
    version_info = version_row[0][0] if version_row else "Unknown"
    logger.info(f"Database version: {version_info}")
