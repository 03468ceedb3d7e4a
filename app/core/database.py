import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from app.core.config import settings

# -----------------------
# Logging setup
# -----------------------
logger = logging.getLogger(__name__)

# -----------------------
# Database URL
# -----------------------
DATABASE_URL = settings.sqlalchemy_database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")

# Conflict-aware writes use dialect specific INSERT ... ON CONFLICT
SUPPORTED_DIALECTS = ("postgresql", "sqlite")


def check_dialect(name: str) -> None:
    if name not in SUPPORTED_DIALECTS:
        raise ValueError(
            f"Unsupported database dialect '{name}'. "
            f"DATABASE_URL must point to one of: {', '.join(SUPPORTED_DIALECTS)}"
        )


# Hide password in logs
safe_db_url = (
    DATABASE_URL.replace(settings.db_password, "****")
    if settings.db_password
    else DATABASE_URL
)
logger.info(f"Connecting to database: {safe_db_url}")
check_dialect(make_url(DATABASE_URL).get_backend_name())

# -----------------------
# SQLAlchemy engine
# -----------------------
if IS_SQLITE:
    # Single shared connection so an in-memory database survives across sessions
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=settings.debug,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        connect_args={"connect_timeout": 5},
    )

    # -----------------------
    # Force configured timezone for all connections
    # -----------------------
    @event.listens_for(engine, "connect")
    def set_timezone(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute(f"SET timezone='{settings.timezone}'")
        cursor.close()


if IS_SQLITE:

    @event.listens_for(engine, "connect")
    def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# -----------------------
# Test connection
# -----------------------
try:
    with engine.connect() as conn:
        logger.info("Database connection successful ✅")
except Exception as e:
    logger.error(f"Failed to connect to database ❌: {str(e)}")
    raise

# -----------------------
# Session and Base
# -----------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# -----------------------
# Dependency for FastAPI
# -----------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error occurred: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()




# -----------------------
# Conflict-aware writes on a unique key
# -----------------------
def _insert(db):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert
    return insert


def insert_or_ignore(db, model, values: dict, index_elements: list) -> bool:
    """
    Insert a row unless one already exists for ``index_elements``.

    Returns True when a new row was written.
    """
    stmt = (
        _insert(db)(model.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=index_elements)
    )
    result = db.execute(stmt)
    return (result.rowcount or 0) > 0


def upsert(db, model, values: dict, index_elements: list, update: dict) -> None:
    """Insert a row, or overwrite ``update`` on the row already holding the key."""
    stmt = (
        _insert(db)(model.__table__)
        .values(**values)
        .on_conflict_do_update(index_elements=index_elements, set_=update)
    )
    db.execute(stmt)
