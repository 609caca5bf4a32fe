# portal_messaging/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portal_messaging.config.settings import settings


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # memória compartilhada entre conexões/threads (dev e testes)
        return create_engine(
            url,
            echo=settings.sql_echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=settings.sql_echo,
        pool_pre_ping=True,
    )


_engine = _build_engine(settings.database_url)

_SessionLocal = sessionmaker(
    bind=_engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def get_engine() -> Engine:
    return _engine


def create_tables() -> None:
    import portal_messaging.infrastructure.database.models  # noqa: F401
    from portal_messaging.infrastructure.database.base_model import BaseModel

    BaseModel.metadata.create_all(bind=_engine)


@contextmanager
def db_session() -> Iterator[Session]:
    session: Session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
