from sqlalchemy import create_engine, pool, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from starlette.requests import HTTPConnection
from datetime import datetime, timezone
import uuid
import os
import logging

from cinesocial.config import ConfigurationError
from cinesocial.realtime import ChangeFeed

logger = logging.getLogger(__name__)

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pool_options(url: str) -> dict:
    """Connection pooling configuration (not applicable to SQLite)"""
    if url.startswith("sqlite"):
        return {}
    return {
        "poolclass": pool.QueuePool,
        "pool_size": int(os.getenv("DB_POOL_SIZE", 5)),  # Number of connections to keep open
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", 10)),  # Max connections beyond pool_size
        "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", 30)),  # Seconds to wait for connection
        "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", 3600)),  # Recycle connections after 1 hour
        "pool_pre_ping": True,
    }


class Backend:
    """
    Process-wide handle to the storage backend.

    Owns the engine, the session factory and the realtime change feed.
    Built once at startup and passed to whoever needs it; data-access
    services only ever see the Session it hands out.
    """

    def __init__(self, url: str, publishable_key: str, **engine_options):
        if not url or not publishable_key:
            raise ConfigurationError("Backend URL and publishable key are both required")

        self.url = url
        self.publishable_key = publishable_key

        options = _pool_options(url)
        options.update(engine_options)
        options.setdefault("echo", os.getenv("DB_ECHO", "false").lower() == "true")
        self.engine = create_engine(url, **options)

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        @event.listens_for(self.engine, "connect")
        def receive_connect(dbapi_conn, connection_record):
            logger.debug("Database connection established")

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.realtime = ChangeFeed()
        self.realtime.attach(self.SessionLocal)

    def session(self) -> Session:
        """
        Get a database session for manual management.
        Remember to close the session after use!
        """
        return self.SessionLocal()

    def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        import cinesocial.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import cinesocial.models  # noqa: F401
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.realtime.close()
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """SQLite only enforces FOREIGN KEY / ON DELETE CASCADE when asked to"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_backend(url: str, publishable_key: str, **engine_options) -> Backend:
    backend = Backend(url, publishable_key, **engine_options)
    logger.info(f"Backend initialised ({backend.engine.dialect.name})")
    return backend


# Dependencies for FastAPI routes
def get_backend(connection: HTTPConnection) -> Backend:
    """Backend built by the application lifespan"""
    return connection.app.state.backend


def get_db(connection: HTTPConnection):
    """
    Database session dependency for FastAPI.
    Automatically handles session creation and cleanup.

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db here
    """
    db = get_backend(connection).session()
    try:
        yield db
    finally:
        db.close()
