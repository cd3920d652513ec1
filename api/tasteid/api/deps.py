from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasteid.db.session import get_session
from tasteid.services.taste_store import SqlTasteStore


async def get_db() -> AsyncSession:
    async for session in get_session():
        yield session


async def get_store(session: AsyncSession = Depends(get_db)) -> SqlTasteStore:
    return SqlTasteStore(session)
