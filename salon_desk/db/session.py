from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from salon_desk.db.models import Base
from salon_desk.services.exceptions import ServiceError, StorageError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and hands out sessions bound to one transaction each."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self._engine = self._build_engine(url, echo=echo)
        self._session_factory = sessionmaker(
            bind=self._engine, expire_on_commit=False
        )

    @staticmethod
    def _build_engine(url: str, *, echo: bool) -> Engine:
        kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # A single shared connection keeps the in-memory schema alive.
                kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        if url.startswith("sqlite"):
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_all(self) -> None:
        logger.info("Ensuring database schema at %s", self.url)
        Base.metadata.create_all(self._engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self._engine)

    def session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session whose writes are committed together or not at all.

        Service errors raised inside the block roll back and propagate
        unchanged; database errors roll back and surface as ``StorageError``.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except ServiceError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Database transaction failed; rolled back")
            raise StorageError("Failed to save changes", cause=exc) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def reader(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            logger.exception("Database read failed")
            raise StorageError("Failed to read from database", cause=exc) from exc
        finally:
            session.close()

    def close(self) -> None:
        self._engine.dispose()
