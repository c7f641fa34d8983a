# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Database engine and session management.

On SQLite every transaction is opened with BEGIN IMMEDIATE so that a
read-latest-then-insert sequence holds the write lock from its first read.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from accessibility_conformance.persistence.models import Base
from accessibility_conformance.utils.config import config_manager
from accessibility_conformance.utils.logging_helper import setup_logger

# Configure module-level logger
logger = setup_logger(__name__)


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    """Take over transaction control from pysqlite and begin IMMEDIATE."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the engine and the session factory handed to services."""

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        """
        Initialize the database.

        Args:
            url: SQLAlchemy database URL (default: database.url from config)
            echo: Whether to log emitted SQL (default: database.echo from config)
        """
        options = config_manager.get_config(section="database")
        self.url = url or options["url"]
        engine_kwargs: Dict[str, Any] = {
            "echo": options.get("echo", False) if echo is None else echo
        }
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}

        self.engine = create_engine(self.url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _enable_sqlite_immediate_transactions(self.engine)

        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.debug("Database engine created for %s", self.engine.url.render_as_string())

    def create_all(self) -> None:
        """Create every table that does not exist yet."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def init_database(url: Optional[str] = None) -> Database:
    """Create a Database and make sure its schema exists."""
    database = Database(url)
    database.create_all()
    logger.info("Database initialized at %s", database.engine.url.render_as_string())
    return database
