from physics_practice.db.base_class import Base

# import models so SQLAlchemy registers them on Base.metadata
from physics_practice.models import assignment, problem, submission, user  # noqa: F401

__all__ = ["Base"]
