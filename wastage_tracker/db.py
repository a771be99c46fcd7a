import os
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./wastage.sqlite"


@dataclass(frozen=True)
class DBConfig:
    url: str

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_in_memory(self) -> bool:
        return self.is_sqlite and (":memory:" in self.url or self.url.rstrip("/") == "sqlite:")


def load_db_config() -> DBConfig:
    url = (os.environ.get("DATABASE_URL") or "").strip() or DEFAULT_DATABASE_URL
    return DBConfig(url=url)


def build_engine(config: DBConfig):
    kwargs = {}
    if config.is_sqlite:
        # the API serves requests from a thread pool
        kwargs["connect_args"] = {"check_same_thread": False}
    if config.is_in_memory:
        # one shared connection, otherwise every connection sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(config.url, **kwargs)


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
