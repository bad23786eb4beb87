from __future__ import annotations

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

load_dotenv()


def _get_database_url() -> str:
    database_url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URL")
    if not database_url:
        raise RuntimeError(
            "DATABASE_URL or SQLALCHEMY_DATABASE_URL must be set to create the database engine."
        )
    return database_url


def _enable_sqlite_savepoints(engine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; take over transaction start.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def _build_engine(database_url: str):
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        # uploads are handled on the threadpool
        connect_args["check_same_thread"] = False
    else:
        kwargs["pool_pre_ping"] = True
    engine = create_engine(database_url, future=True, connect_args=connect_args, **kwargs)
    if database_url.startswith("sqlite"):
        _enable_sqlite_savepoints(engine)
    return engine


DATABASE_URL = _get_database_url()
engine = _build_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
