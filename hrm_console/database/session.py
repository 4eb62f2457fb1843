from hrm_console.database.engine import SessionLocal
from hrm_console.database.base import Base


def get_db():
    """Provides a synchronous database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create the console tables (profiles, products, user_permissions)."""
    import hrm_console.models  # noqa: F401
    from hrm_console.database.engine import engine

    Base.metadata.create_all(bind=bind or engine)
