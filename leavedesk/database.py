from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from leavedesk.core.config import settings


def build_engine(url: str, **kwargs) -> Engine:
    """
    PostgreSQL or SQLite engine for `url`.
    SQLite connections get foreign keys switched on so audit rows of a
    deleted request are detached instead of left dangling.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    sqlite_engine = create_engine(url, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Session Provider: one session per request.
    Commits and rollbacks are issued by the services, never here.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the leave tables. Called once from the application lifespan."""
    from leavedesk.models import leave_request, leave_balance, leave_audit_log  # noqa: F401
    Base.metadata.create_all(bind=engine)
