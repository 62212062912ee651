from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def build_engine(database_url):
    """Create the engine, which manages connections."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened from FastAPI's worker threads
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine):
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )


def init_db(engine):
    # Model classes must be imported before create_all sees their tables
    from country_cache import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
