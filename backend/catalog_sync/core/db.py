from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from catalog_sync import models  # noqa: F401  (registers tables on the metadata)
from catalog_sync.core.config import settings

engine = create_engine(settings.SQLALCHEMY_DATABASE_URI)


def init_db(bind: Engine | None = None) -> None:
    """Create all catalog tables that do not exist yet."""
    SQLModel.metadata.create_all(bind or engine)


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
