from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from recurring_orders.config import get_settings
from recurring_orders.core.logging import get_logger
from recurring_orders.models import Base

logger = get_logger(__name__)

settings = get_settings()


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db(db_engine: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet (dev/local use; production runs alembic)."""
    async with (db_engine or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("database_initialized")
