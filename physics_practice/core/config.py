import os
from datetime import timedelta

# DEV defaults: override every secret through env vars in production.
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE = timedelta(days=30)

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "physics_session")
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "0") == "1"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./physics_practice.db")

# Hosting providers still hand out postgres://; use the psycopg3 driver
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)

SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "1") == "1"

# Grading policy
DEFAULT_TOLERANCE_PERCENT = 2.0
DEFAULT_MAX_ATTEMPTS = 3
ZERO_ANSWER_ABS_TOLERANCE = 0.01  # used when the reference answer is exactly 0
MAX_FORMULA_LENGTH = 500
