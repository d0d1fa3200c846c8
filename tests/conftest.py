import os

# Settings are read at import time, so the environment goes first
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base
from core.roles import ROLE_ADMIN, ROLE_SUPER_ADMIN
from utils.deps import get_db
from tests.helpers import create_store_member, bearer_for

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def client(session: Session):
    """
    HTTP client bound to the app, with get_db pointing at the test session.
    """
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def store_owner(session):
    """Single-store ADMIN who logs in with a@a.com / secret1."""
    return create_store_member(
        session,
        email="a@a.com",
        password="secret1",
        role=ROLE_ADMIN,
        store_name="Loja Centro",
        phones=["+5511987654321"]
    )


@pytest.fixture
def super_admin(session):
    return create_store_member(
        session,
        email="root@vlstore.com.br",
        password="rootpass1",
        role=ROLE_SUPER_ADMIN,
        store_name="VL Matriz",
        profile_document="98765432100"
    )


@pytest.fixture
def super_admin_headers(super_admin):
    return bearer_for(super_admin)
