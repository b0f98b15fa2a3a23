import os

TEST_DB_FILE = "test_physics_practice.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# config is read at import time, so point the app at the test DB first
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["SEED_DEMO_DATA"] = "0"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from physics_practice.core.deps import get_db  # noqa: E402
from physics_practice.core.security import hash_password  # noqa: E402
from physics_practice.db.base import Base  # noqa: E402
from physics_practice.main import app  # noqa: E402
from physics_practice.models.assignment import Assignment  # noqa: E402
from physics_practice.models.problem import Problem  # noqa: E402
from physics_practice.models.submission import Submission  # noqa: E402
from physics_practice.models.user import User  # noqa: E402

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# bcrypt is slow on purpose; hash once for every seeded account
PASSWORD = "password123"
HASHED_PASSWORD = hash_password(PASSWORD)

VELOCITY = {
    "title": "Velocity Calculation",
    "description": "A car travels {distance} meters in {time} seconds. Calculate the velocity in m/s.",
    "variables": {"distance": {"min": 50, "max": 200}, "time": {"min": 5, "max": 20}},
    "formula": "distance / time",
    "unit": "m/s",
    "tolerance_percent": 2,
    "max_attempts": 3,
}

FORCE = {
    "title": "Force Calculation",
    "description": "An object with mass {mass} kg accelerates at {acceleration} m/s². Calculate the force in Newtons.",
    "variables": {"mass": {"min": 10, "max": 100}, "acceleration": {"min": 2, "max": 15}},
    "formula": "mass * acceleration",
    "unit": "N",
    "tolerance_percent": 2,
    "max_attempts": 3,
}


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """Seed a clean minimal dataset for each test and hand back its ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Assignment).delete()
        db.query(Problem).delete()
        db.query(User).delete()
        db.commit()

        db.add_all(
            [
                User(username="teacher", role="teacher", hashed_password=HASHED_PASSWORD),
                User(username="student1", role="student", hashed_password=HASHED_PASSWORD),
                User(username="student2", role="student", hashed_password=HASHED_PASSWORD),
            ]
        )
        db.commit()

        velocity = Problem(**VELOCITY)
        force = Problem(**FORCE)
        db.add_all([velocity, force])
        db.commit()
        db.refresh(velocity)
        db.refresh(force)

        assignment = Assignment(
            title="Week 1 - Kinematics",
            description="Basic velocity and acceleration problems",
            problem_ids=[velocity.id, force.id],
            due_date=date(2026, 1, 10),
        )
        db.add(assignment)
        db.commit()
        db.refresh(assignment)

        yield {
            "assignment_id": assignment.id,
            "velocity_id": velocity.id,
            "force_id": force.id,
        }
    finally:
        db.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def login(client, username: str, password: str = PASSWORD) -> str:
    r = client.post("/api/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def teacher_headers(client):
    return auth_header(login(client, "teacher"))


@pytest.fixture()
def student_headers(client):
    return auth_header(login(client, "student1"))


@pytest.fixture()
def student2_headers(client):
    return auth_header(login(client, "student2"))


@pytest.fixture()
def session_factory():
    """For tests that need a second, independent session (a competing request)."""
    return TestingSessionLocal
