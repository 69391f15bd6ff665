from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.postgres import AsyncSessionFactory


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request: commit on success, roll back on any error."""
    factory: AsyncSessionFactory = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
