import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .errors import InternalError

log = logging.getLogger("gestion.database")

settings = get_settings()


def build_engine(url: str):
    # SQLite (desarrollo y tests): una sola conexión compartida si es en memoria
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        eng = create_engine(url, **kwargs)

        @event.listens_for(eng, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return eng

    # pool_pre_ping ayuda a reconectar conexiones muertas.
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Crea las tablas (si no existen) y asegura las cuentas canónicas."""
    # Registrar modelos antes del create_all
    from . import models  # noqa: F401
    from .auth import seed_users

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_users(db)
    finally:
        db.close()


def shutdown_db():
    engine.dispose()


@contextmanager
def storage_errors(db, message: str):
    """Traduce cualquier fallo de SQLAlchemy en un InternalError genérico.

    El detalle del motor se queda en el log, nunca llega al cliente.
    """
    try:
        yield
    except SQLAlchemyError:
        db.rollback()
        log.exception(message)
        raise InternalError(message)
