import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from .settings.config import settings

logger = logging.getLogger(__name__)

raw_url = settings.DATABASE_URL
if raw_url.startswith("postgresql+psycopg"):
    # if someone provided a sync URL by mistake, upgrade it to async
    DATABASE_URL = raw_url.replace("postgresql+psycopg2", "postgresql+asyncpg").replace(
        "postgresql+psycopg", "postgresql+asyncpg"
    )
else:
    DATABASE_URL = raw_url

# sqlite connections are cheap and must not outlive the event loop that opened them
_engine_kwargs = {"poolclass": NullPool} if DATABASE_URL.startswith("sqlite") else {}

engine = create_async_engine(DATABASE_URL, echo=False, future=True, **_engine_kwargs)
async_session_maker = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
Base = declarative_base()

_ready = False


def is_ready() -> bool:
    return _ready


def mark_ready(value: bool) -> None:
    global _ready
    _ready = value


async def get_db():
    async with async_session_maker() as session:
        yield session


async def init_db():
    # Only run create_all in dev, never in prod with Alembic
    if settings.RUN_DB_CREATE_ALL:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def connect_once() -> bool:
    """Ping the database (creating tables in dev) and flip the ready flag."""
    try:
        await init_db()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        mark_ready(False)
        logger.error("Database connection failed: %s", exc)
        return False
    mark_ready(True)
    logger.info("Database connected; blob store ready.")
    return True


async def connect_with_retry(delay: float | None = None) -> None:
    wait = settings.DB_RETRY_SECONDS if delay is None else delay
    while not await connect_once():
        logger.warning("Retrying database connection in %ss...", wait)
        await asyncio.sleep(wait)
