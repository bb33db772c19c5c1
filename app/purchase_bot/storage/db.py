from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from purchase_bot.config import settings


def create_db_engine(dsn: str) -> Engine:
    """
    Движок БД по DSN.

    SQLite (локальный запуск, тесты) работает через одно соединение: операции
    хранилища выполняются из пула потоков asyncio.to_thread.
    """
    if dsn.startswith("sqlite"):
        return create_engine(
            dsn,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(dsn, echo=False, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Движок из настроек; создаётся при первом обращении."""
    return create_db_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker[Session]:
    return create_session_factory(get_engine())


def get_session() -> Session:
    """Создать новую сессию БД."""
    return _session_factory()()
