from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from hrm_console.core.config import settings

load_dotenv()


def normalize_database_url(url: str) -> str:
    """Pin PostgreSQL URLs to the synchronous psycopg2 driver."""
    if url.startswith("postgresql+asyncpg://"):
        return url.replace("postgresql+asyncpg://", "postgresql+psycopg2://")
    if url.startswith("postgresql://") and "psycopg2" not in url and "asyncpg" not in url:
        return url.replace("postgresql://", "postgresql+psycopg2://")
    return url


DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is not set.")

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_timeout=30,
        pool_recycle=3600,
        connect_args={"connect_timeout": 10},
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
