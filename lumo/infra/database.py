"""
Database session management and configuration - PostgreSQL with pgvector.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text, event
from sqlalchemy.orm import sessionmaker, Session
from loguru import logger

from lumo.config.settings import DatabaseConfig


class Database:
    """
    PostgreSQL database connection manager

    Handles connection pooling, session management, and configuration.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None, test_connection: bool = True):
        """
        Initialize database connection

        Args:
            config: Database configuration (defaults to env vars)
            test_connection: Run a check query on startup
        """
        self.config = config or DatabaseConfig()

        connection_string = self.config.get_connection_string()

        logger.info(f"Connecting to PostgreSQL: {self.config.database} @ {self.config.host}:{self.config.port}")

        # Create engine with connection pooling
        self.engine = create_engine(
            connection_string,
            pool_pre_ping=True,      # Verify connections before using
            pool_recycle=3600,       # Recycle connections after 1 hour
            pool_size=5,             # Connection pool size
            max_overflow=10,         # Max overflow connections
            echo=False               # Set to True for SQL query logging
        )

        # Session factory
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

        self._register_session_listener()

        if test_connection:
            self._test_connection()

    def _register_session_listener(self):
        """
        Pin every pooled connection to UTC.

        Timestamps cross the store boundary as ISO-8601 UTC strings, and the
        calendar day window is computed in UTC.
        """
        @event.listens_for(self.engine, "connect")
        def set_session_timezone(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute("SET TIME ZONE 'UTC'")
            except Exception as e:
                logger.error(f"❌ Failed to set session time zone: {e}")
            finally:
                cursor.close()

    def _test_connection(self):
        """Test database connection and the vector extension on initialization"""
        try:
            with self.engine.connect() as conn:
                db_name, version = conn.execute(text("SELECT current_database(), version()")).fetchone()
                has_vector = conn.execute(
                    text("SELECT 1 FROM pg_extension WHERE extname = 'vector'")
                ).fetchone()
                logger.success(f"✅ Connected to PostgreSQL: {db_name} ({version.split(',')[0]})")
                if not has_vector:
                    logger.warning("⚠️  pgvector extension not installed - semantic retrieval will return no snippets")
        except Exception as e:
            logger.error(f"❌ Failed to connect to PostgreSQL: {e}")
            raise

    def get_session(self) -> Session:
        """
        Get a new database session

        Returns:
            SQLAlchemy Session
        """
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations

        Usage:
            with db.session_scope() as session:
                session.execute(text("SELECT 1"))
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Close pooled connections"""
        self.engine.dispose()


# Global database instance (lazy initialization)
_db_instance = None


def get_database() -> Database:
    """Get or create global database instance"""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
    return _db_instance


def close_database() -> None:
    """Dispose the global database pool if it was ever opened"""
    global _db_instance
    if _db_instance is not None:
        _db_instance.dispose()
        _db_instance = None
        logger.info("Database pool disposed")
