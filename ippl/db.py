from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

IS_SQLITE = DATABASE_URL.startswith("sqlite")

# timeout: segundos que una conexión espera el lock de escritura antes de fallar
connect_args = {"check_same_thread": False, "timeout": 30} if IS_SQLITE else {}

engine = create_engine(
    DATABASE_URL,
    echo=False,              # True para ver las queries
    future=True,
    connect_args=connect_args,
)

if IS_SQLITE:
    # pysqlite abre la transacción recién en la primera escritura, así que un
    # SELECT seguido de INSERT no es atómico. Con BEGIN IMMEDIATE cada
    # transacción toma el lock de escritura al empezar y las sesiones se
    # ejecutan de a una (en PostgreSQL lo resuelve SELECT ... FOR UPDATE).
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base ORM para todos los modelos."""
    pass


@contextmanager
def db_session() -> Iterator[Session]:
    """
    Context manager de sesión:
    - commit si todo sale bien
    - rollback ante excepciones
    - close siempre
    """
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Crea las tablas si no existen."""
    # registra todos los modelos en el metadata
    from . import auth_models, models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Tablas verificadas en {engine.url}")


def drop_db() -> None:
    from . import auth_models, models  # noqa: F401

    Base.metadata.drop_all(bind=engine)


def new_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """UTC naive, como se guarda en las columnas DateTime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
