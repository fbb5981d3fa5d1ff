from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def make_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # sessions are used from FastAPI's threadpool
        engine = create_engine(database_url, connect_args={"check_same_thread": False})

        # SQLite's built-in lower() only folds ASCII; ilike compiles to lower() LIKE lower()
        @event.listens_for(engine, "connect")
        def _register_lower(dbapi_conn, connection_record):
            dbapi_conn.create_function("lower", 1, _unicode_lower)

        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=280,   # helps with idle connection timeouts
        pool_size=5,
        max_overflow=10,
    )


def make_session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(engine):
    import models  # noqa: F401  registers the tables on Base.metadata

    Base.metadata.create_all(bind=engine)


# Database dependency
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
