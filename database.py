import logging
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DB_PATH = os.environ.get("DATABASE_PATH", os.path.join(BASE_DIR, "reef.db"))

def normalize_database_url(raw_url: str) -> str:
    url = raw_url.strip()
    if url.startswith("psql "):
        url = url[5:].strip()
    if (url.startswith("'") and url.endswith("'")) or (url.startswith('"') and url.endswith('"')):
        url = url[1:-1]
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url

def connect_args_for(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if url.startswith("postgresql+psycopg"):
        return {"sslmode": "require"}
    return {}

def make_engine(url: str):
    return create_engine(url, connect_args=connect_args_for(url), future=True)

DATABASE_URL = os.environ.get("DATABASE_URL")

if DATABASE_URL:
    SQLALCHEMY_DATABASE_URL = normalize_database_url(DATABASE_URL)
else:
    SQLALCHEMY_DATABASE_URL = f"sqlite:///{DB_PATH}"

engine = make_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def init_db(bind=None) -> None:
    import models  # noqa: F401
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Logbook tables ready on %s", target.url.render_as_string(hide_password=True))

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
