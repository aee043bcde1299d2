from __future__ import annotations

import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Ensure the project root (which exposes the ``backend`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")

from backend.cashflow import models  # noqa: E402
from backend.cashflow.database import Base, get_db  # noqa: E402
from backend.cashflow.main import app  # noqa: E402
from backend.cashflow.routers.dependencies import get_commerce_client_factory  # noqa: E402
from backend.tests.factories import BUSINESS_ID, FakeCommerceClient  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite only emits SAVEPOINT correctly when SQLAlchemy owns BEGIN.
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, _record) -> None:
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(connection) -> None:
    connection.exec_driver_sql("BEGIN")


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def commerce() -> FakeCommerceClient:
    return FakeCommerceClient()


@pytest.fixture
def business_settings(db_session: Session) -> models.BusinessSettings:
    settings = models.BusinessSettings(
        business_id=BUSINESS_ID,
        store_url="https://shop.example.com",
        consumer_key="ck_test",
        consumer_secret="cs_test",
        vat_rate=Decimal("17"),
        credit_card_rate=Decimal("2.5"),
        materials_rate=Decimal("30"),
        shipping_cost=Decimal("0"),
        valid_order_statuses=["processing", "completed"],
        free_shipping_methods=["local_pickup"],
    )
    db_session.add(settings)
    db_session.commit()
    return settings


@pytest.fixture
def client(db_session: Session, commerce: FakeCommerceClient) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_commerce_client_factory] = lambda: commerce.factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_commerce_client_factory, None)

