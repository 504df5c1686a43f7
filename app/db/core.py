import sqlite3

from app.core.config import settings
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    SQLite ships with foreign key enforcement off; turn it on for every
    new connection so option references and cascades behave as on Postgres.
    """
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


connect_args = {}

# FastAPI runs sync endpoints in a threadpool; SQLite connections must be shareable
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args)


def get_session():
    with Session(engine) as session:
        yield session
