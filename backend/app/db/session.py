"""
Database session management
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.logging_config import get_logger

logger = get_logger(__name__)


def enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let SQLAlchemy issue BEGIN itself on pysqlite connections.

    The driver's own transaction handling breaks SAVEPOINT (begin_nested),
    which the stock migration relies on.
    """
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


connection_string = settings.database_url
_url = make_url(connection_string)

# Log connection info (without password)
logger.info(f"Database connection: {_url.render_as_string(hide_password=True)}")

engine_kwargs = {
    "echo": False,  # Set to True for SQL query logging
    "pool_pre_ping": True,  # Verify connections before using
}
if _url.get_backend_name() == "sqlite":
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_recycle"] = 3600  # Recycle connections after 1 hour

engine = create_engine(connection_string, **engine_kwargs)
if _url.get_backend_name() == "sqlite":
    enable_sqlite_savepoints(engine)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_database() -> None:
    """Create any missing tables. Schema changes go through Alembic (backend/migrations)."""
    from app.db.base import Base
    import app.models  # noqa: F401  (registers every model on Base.metadata)

    Base.metadata.create_all(bind=engine)


def get_db():
    """
    Dependency for getting database session

    Usage in FastAPI endpoints:
        @router.get("/suppliers/list")
        def list_suppliers(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
