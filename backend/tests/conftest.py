from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from catalog_sync.core.db import init_db
from catalog_sync.exceptions.handlers import register_exception_handlers

from fixtures.factories import *  # noqa: F403
from fixtures.fake_http import *  # noqa: F403

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="session")
def create_test_database() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_transaction(create_test_database: Engine) -> Generator[Session, None, None]:
    connection = create_test_database.connect()
    transaction = connection.begin()

    session = Session(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    return app


@pytest.fixture(scope="function")
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
