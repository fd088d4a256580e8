import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool

from contact_api.errors import StorageConnectionError

logger = logging.getLogger(__name__)

# Base class for SQLAlchemy models
Base = declarative_base()

# Schemes that point at a remote libSQL (Turso) database
LIBSQL_SCHEMES = ("libsql", "https", "wss", "sqlite+libsql")


def build_database_url(base_url: str, auth_token: str) -> URL:
    """
    Compose the SQLAlchemy connection URL from the base URL and auth token.

    Remote libSQL URLs (libsql://, https://, sqlite+libsql://) are rewritten
    for the sqlite+libsql dialect with the token in the query string.
    Local sqlite:// URLs are returned unchanged.

    Raises:
        StorageConnectionError: if the URL cannot be parsed
    """
    try:
        url = make_url(base_url)
    except ArgumentError as e:
        raise StorageConnectionError(f"Invalid database URL: {e}") from e

    if url.drivername not in LIBSQL_SCHEMES:
        return url

    return url.set(drivername="sqlite+libsql").update_query_dict(
        {"authToken": auth_token, "secure": "true"}
    )


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class Database:
    """
    Handle on the relational store.

    Owns the SQLAlchemy engine and the session factory. One instance is
    created at startup and shared by all requests; the engine's pool handles
    concurrent access.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def session(self) -> Session:
        return self._session_factory()

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def create_schema(self) -> None:
        # Import models to register them with Base.metadata
        from contact_api.models import Contact  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def check_health(self) -> bool:
        """
        Check if the database is reachable.

        Returns:
            True if a trivial query succeeds, False otherwise.
        """
        try:
            self.ping()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def dispose(self) -> None:
        logger.info("Releasing database connections")
        self.engine.dispose()


def connect(base_url: str, auth_token: str, engine: Optional[Engine] = None) -> Database:
    """
    Open the database, verify connectivity and ensure the schema exists.

    Args:
        base_url: Database URL from configuration
        auth_token: Auth token for remote libSQL databases
        engine: Pre-built engine to use instead of one built from the URL

    Returns:
        A ready-to-use Database handle

    Raises:
        StorageConnectionError: if any step fails; callers treat it as fatal
    """
    if engine is None:
        url = build_database_url(base_url, auth_token)
        logger.debug(f"Connecting to database: {url.render_as_string(hide_password=True).split('?')[0]}")

        kwargs = {"echo": False}
        if url.get_backend_name() == "sqlite":
            # Sessions are used from FastAPI's threadpool
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(url):
                kwargs["poolclass"] = StaticPool
        try:
            engine = create_engine(url, **kwargs)
        except (ArgumentError, SQLAlchemyError, ImportError) as e:
            raise StorageConnectionError(f"Could not create database engine: {e}") from e

    database = Database(engine)

    try:
        database.ping()
        logger.debug("Database connectivity OK")
    except SQLAlchemyError as e:
        engine.dispose()
        raise StorageConnectionError(f"Database is not reachable: {e}") from e

    try:
        database.create_schema()
    except SQLAlchemyError as e:
        engine.dispose()
        raise StorageConnectionError(f"Could not create contacts table: {e}") from e

    logger.info("Database initialized successfully")
    return database
