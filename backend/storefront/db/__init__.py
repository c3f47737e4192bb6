import importlib
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.config import settings

log = logging.getLogger("storage")

Base = declarative_base()


def make_engine(url: str):
    """
    Build an engine for `url`. In-memory sqlite gets a StaticPool so every
    session shares the one connection (and therefore the one database).
    """
    kwargs = {"future": True, "echo": False}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)


def init_db(bind=None):
    """
    Create the schema on `bind` (defaults to the configured engine).
    Model modules are imported first so Base.metadata is populated.
    """
    model_modules = [
        "storefront.models.storage_entry",
    ]
    for mod in model_modules:
        importlib.import_module(mod)

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    log.info("init_db: tables ready on %s", bind.url)
