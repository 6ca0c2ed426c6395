import os

# gymadmin の設定はimport時に読み込まれるため、先に環境変数を差し替える
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEBUG"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gymadmin.core.database import Base, get_db
from gymadmin.main import app
from gymadmin.models import SubscriptionPlan, User
from gymadmin.routers.deps import require_admin

TEST_ADMIN = {"admin_id": "1", "role": "admin", "email": "admin@example.com"}


@pytest.fixture
def engine():
    """テストごとに空のインメモリSQLiteを用意する"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """会員を作成するファクトリ"""
    counter = {"n": 0}

    def _make(category="student", is_active=True, **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            first_name=fields.pop("first_name", f"Test{n}"),
            last_name=fields.pop("last_name", "Member"),
            email=fields.pop("email", f"member{n}@example.com"),
            university_id=fields.pop("university_id", f"{10000000 + n}" if category != "public" else None),
            category=category,
            is_active=is_active,
            **fields,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_plan(db):
    """プランを作成するファクトリ"""

    def _make(user_category="student", duration_type="monthly", price="50.00", days=30, is_active=True, name=None):
        plan = SubscriptionPlan(
            name=name or f"{user_category} {duration_type}",
            user_category=user_category,
            duration_type=duration_type,
            price_amount=Decimal(price),
            duration_days=days,
            is_active=is_active,
        )
        db.add(plan)
        db.commit()
        return plan

    return _make


@pytest.fixture
def client(db):
    """get_db と require_admin を差し替えた TestClient"""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[require_admin] = lambda: TEST_ADMIN
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
