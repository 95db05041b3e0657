import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from order_service.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

class Base(DeclarativeBase): pass


def _sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class UnitOfWork:
    """One logical connection/transaction checked out of the store's pool.

    Statements go through ``session``; the owner decides when to ``commit``
    or ``rollback``. Anything still pending when the scope closes is rolled
    back by ``Store.unit_of_work``.
    """

    def __init__(self, session: Session):
        self.session = session
        self.finished = False

    def commit(self) -> None:
        self.session.commit()
        self.finished = True

    def rollback(self) -> None:
        if self.finished:
            return
        self.session.rollback()
        self.finished = True


class Store:
    def __init__(self, engine: Engine):
        self.engine = engine
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _sqlite_foreign_keys)
        self._sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        session = self._sessions()
        try:
            # check the connection out now so pool exhaustion surfaces here
            session.connection()
        except SQLAlchemyError as exc:
            session.close()
            logger.error("could not acquire a database connection: %s", exc)
            raise StoreUnavailable(cause=exc) from exc
        uow = UnitOfWork(session)
        try:
            yield uow
        finally:
            try:
                uow.rollback()
            finally:
                session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def build_store(dsn: str, pool_size: int, max_overflow: int, pool_timeout: float) -> Store:
    engine = create_engine(
        dsn,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
    )
    return Store(engine)
