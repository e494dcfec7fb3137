import logging
import threading
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Base class for all database models
Base = declarative_base()


class Database:
    """
    Process-wide handle on the database.

    The engine (and its connection pool) is created on first use and reused
    by every later request. Creation is guarded by a lock so that concurrent
    first requests still end up sharing a single engine.
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            with self._lock:
                # Another thread may have finished initialisation while we waited
                if self._engine is None:
                    engine = create_engine(self.url, **self._engine_kwargs)
                    self._session_factory = sessionmaker(
                        autocommit=False, autoflush=False, bind=engine
                    )
                    self._engine = engine
                    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def session(self) -> Session:
        """Open a new session bound to the shared engine"""
        if self._session_factory is None:
            self.engine  # noqa: B018 - first access builds the engine and factory
        return self._session_factory()

    def create_all(self) -> None:
        """Create tables for every model that inherits from Base"""
        # Models register themselves on Base.metadata when imported
        from recipe_api.models import favourite, recipe, review, shopping_list, token, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                self._session_factory = None
                logger.info("Database engine disposed")


def get_db(request: Request):
    """
    Dependency for getting database session.

    The Database handle lives on app.state, so handlers never reach for a
    module-level connection. The session is closed after the request completes.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        # Always close session, even if request raises an exception
        db.close()
