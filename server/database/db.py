# server/database/db.py

import os
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine
from config import credentials

# Get the absolute path to the database file
current_dir = os.path.dirname(os.path.abspath(__file__))
db_path = os.path.join(current_dir, "irrigation.db")

DATABASE_URL = credentials.DATABASE_URL or f"sqlite:///{db_path}"
IMMEDIATE_OPTION = "sqlite_begin_immediate"


def _create_sqlite_engine(url):
    engine = create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False, "timeout": credentials.DB_TIMEOUT},
    )

    # Readers run on a WAL snapshot and never wait for writers. Write paths
    # open their session with get_session(immediate=True) and take the write
    # lock at BEGIN, waiting on the busy timeout instead of failing on upgrade.
    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(IMMEDIATE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def _create_engine(url):
    if url.startswith("sqlite"):
        return _create_sqlite_engine(url)
    return create_engine(url, echo=False, pool_pre_ping=True, pool_timeout=credentials.DB_TIMEOUT)


engine = _create_engine(DATABASE_URL)

def init_db():
    # Ensure the database directory exists
    if DATABASE_URL.startswith("sqlite:///"):
        os.makedirs(os.path.dirname(os.path.abspath(DATABASE_URL[len("sqlite:///"):])), exist_ok=True)
    SQLModel.metadata.create_all(engine)

def get_session(immediate=False):
    bind = engine.execution_options(**{IMMEDIATE_OPTION: True}) if immediate else engine
    return Session(bind, expire_on_commit=False)

def check_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        return True
    except SQLAlchemyError:
        return False
