# app/db.py
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool
from app.settings import settings

class Base(DeclarativeBase):
    pass

def _make_engine(url: str):
    is_sqlite = url.startswith("sqlite:")
    if is_sqlite:
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        # API and worker share one file: no pooling, WAL so readers don't block the status writes
        engine = create_engine(
            url,
            future=True,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},  # sessions cross threads in the API's threadpool
        )
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()
        return engine
    else:
        # shared recordings/jobs database
        return create_engine(
            url,
            future=True,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=5,
            pool_recycle=1800,
            connect_args={"connection_timeout": 10},
        )

engine = _make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
