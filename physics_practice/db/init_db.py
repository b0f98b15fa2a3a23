import logging
from datetime import date

from sqlalchemy.orm import Session

from physics_practice.core.config import SEED_DEMO_DATA
from physics_practice.core.security import hash_password
from physics_practice.db.base import Base
from physics_practice.db.session import SessionLocal, engine
from physics_practice.models.assignment import Assignment
from physics_practice.models.problem import Problem
from physics_practice.models.user import ROLE_STUDENT, ROLE_TEACHER, User

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("teacher", "teacher123", ROLE_TEACHER),
    ("student1", "student123", ROLE_STUDENT),
]

DEMO_PROBLEMS = [
    {
        "title": "Velocity Calculation",
        "description": "A car travels {distance} meters in {time} seconds. Calculate the velocity in m/s.",
        "variables": {"distance": {"min": 50, "max": 200}, "time": {"min": 5, "max": 20}},
        "formula": "distance / time",
        "unit": "m/s",
        "tolerance_percent": 2,
        "max_attempts": 3,
    },
    {
        "title": "Force Calculation",
        "description": "An object with mass {mass} kg accelerates at {acceleration} m/s². Calculate the force in Newtons.",
        "variables": {"mass": {"min": 10, "max": 100}, "acceleration": {"min": 2, "max": 15}},
        "formula": "mass * acceleration",
        "unit": "N",
        "tolerance_percent": 2,
        "max_attempts": 3,
    },
]


def seed_demo_data(db: Session) -> None:
    """Demo accounts always; sample problems and assignment only on an empty table."""
    for username, password, role in DEMO_USERS:
        if not db.query(User).filter(User.username == username).first():
            db.add(User(username=username, hashed_password=hash_password(password), role=role))
    db.commit()

    if db.query(Problem).count() > 0:
        return

    problems = [Problem(**p) for p in DEMO_PROBLEMS]
    db.add_all(problems)
    db.flush()

    db.add(
        Assignment(
            title="Week 1 - Kinematics",
            description="Basic velocity and acceleration problems",
            problem_ids=[p.id for p in problems],
            due_date=date(2026, 1, 10),
        )
    )
    db.commit()
    logger.info("Seeded demo problems and assignment")


def init_db() -> None:
    Base.metadata.create_all(bind=engine)

    if not SEED_DEMO_DATA:
        return

    db = SessionLocal()
    try:
        seed_demo_data(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    logger.info("Database initialized")
