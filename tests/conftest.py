# File: tests/conftest.py

import os
import tempfile

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="citywatch-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import Category, City, Department, State, User, UserRole, Ward
from tests.helpers import auth

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret1"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        s = TestingSessionLocal()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def places(db):
    """Two cities; the first carries wards, departments and the categories."""
    state = State(name="Maharashtra", code="MH")
    nagpur = City(name="Nagpur", state=state, is_active=True)
    pune = City(name="Pune", state=state, is_active=True)
    db.add_all([state, nagpur, pune])
    db.flush()
    ward = Ward(name="Dharampeth", number="1", city_id=nagpur.id)
    other_ward = Ward(name="Kothrud", number="1", city_id=pune.id)
    pwd = Department(name="Public Works Department", code="PWD", city_id=nagpur.id)
    pune_pwd = Department(name="Public Works Department", code="PWD", city_id=pune.id)
    roads = Category(name="Roads & Infrastructure", slug="roads", sort_order=1)
    waste = Category(name="Waste Management", slug="waste", sort_order=2)
    retired = Category(name="Retired", slug="retired", sort_order=0, is_active=False)
    db.add_all([ward, other_ward, pwd, pune_pwd, roads, waste, retired])
    db.commit()
    return {
        "city": nagpur.id,
        "other_city": pune.id,
        "ward": ward.id,
        "other_ward": other_ward.id,
        "department": pwd.id,
        "other_department": pune_pwd.id,
        "category": roads.id,
        "second_category": waste.id,
        "inactive_category": retired.id,
    }


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.CITIZEN, phone=None, assigned_city_id=None, **kw):
        counter["n"] += 1
        user = User(
            name=kw.pop("name", f"{role.value.title()} {counter['n']}"),
            phone=phone or f"70000000{counter['n']:02d}",
            hashed_password=hash_password(PASSWORD),
            role=role,
            assigned_city_id=assigned_city_id,
            **kw,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def citizen(make_user):
    return make_user(UserRole.CITIZEN)


@pytest.fixture
def moderator(make_user):
    return make_user(UserRole.MODERATOR)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.SUPER_ADMIN)


@pytest.fixture
def authority(make_user):
    return make_user(UserRole.AUTHORITY)


@pytest.fixture
def report(client, places):
    """POST a new issue as `user` and return its data."""
    def _report(user, **fields):
        body = {
            "title": "Pothole on main road",
            "description": "Deep pothole near the bus stop",
            "category_id": places["category"],
            "city_id": places["city"],
            "ward_id": places["ward"],
            "latitude": 21.1458,
            "longitude": 79.0882,
        }
        body.update(fields)
        r = client.post("/api/issues", json=body, headers=auth(user))
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return _report


@pytest.fixture
def verified_issue(client, report, citizen, moderator, places):
    issue = report(citizen)
    r = client.post(
        f"/api/moderation/{issue['id']}/verify",
        json={"department_id": places["department"]},
        headers=auth(moderator),
    )
    assert r.status_code == 200, r.text
    return r.json()["data"]
