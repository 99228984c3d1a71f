# booking/db.py

import sqlite3

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from booking.config import get_settings


# SQLite ignores FOREIGN KEY clauses unless asked per connection
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)  # sessions may cross threads
    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


_settings = get_settings()

# Engine = connection to the database
engine = make_engine(_settings.DATABASE_URL, echo=_settings.SQL_ECHO)


def create_db_and_tables(bind: Engine = engine) -> None:
    # models must be imported so their tables are registered on the metadata
    from booking import models  # noqa: F401

    SQLModel.metadata.create_all(bind)


# One session per unit of work
def get_session():
    with Session(engine) as session:
        yield session
