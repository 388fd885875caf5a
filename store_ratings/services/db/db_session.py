from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Async generator yielding an AsyncSession from the engine attached to the app.
    Use it in handlers as:
        session: AsyncSession = Depends(get_session)
    The session is closed when the request finishes.
    """

    async with request.app.state.db_engine.create_session() as session:
        yield session
