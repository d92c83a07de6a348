from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from src.config import Config
from sqlmodel import SQLModel
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession


def serialize_sqlite_writers(engine: AsyncEngine) -> AsyncEngine:
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    SQLite has no SELECT ... FOR UPDATE and the driver only opens a
    transaction before the first write, so two sessions could both read a
    device's share total before either inserts. Taking the write lock at
    BEGIN makes the whole transaction exclusive among writers.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(url: str, **kwargs) -> AsyncEngine:
    engine = create_async_engine(url=url, **kwargs)
    if engine.dialect.name == "sqlite":
        serialize_sqlite_writers(engine)
    return engine


engine = build_engine(
    Config.DATABASE_URL,
    echo=Config.DB_ECHO,
    pool_pre_ping=True,
)

def register_models():
    # Import all models here to ensure they are registered on SQLModel.metadata
    # (Otherwise SQLModel.metadata.create_all may create only a subset of tables.)
    from src.auth import models as _auth_models
    from src.customers import models as _customer_models
    from src.marketers import models as _marketer_models
    from src.smds import models as _smd_models
    from src.closings import models as _closing_models
    from src.payouts import models as _payout_models

async def init_db():
    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

# Session factory configured for async operations
async_session_maker = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_Session():
    # One session (and so one transaction) per request; closing the session
    # rolls back anything left uncommitted.
    async with async_session_maker() as session:
        yield session
