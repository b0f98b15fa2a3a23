from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from physics_practice.core.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_TOLERANCE_PERCENT
from physics_practice.db.base_class import Base


class Problem(Base):
    """A parametric word problem: `description` holds `{name}` placeholders,
    `variables` maps each name to a `{"min": .., "max": ..}` range."""

    __tablename__ = "problems"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    variables: Mapped[dict] = mapped_column(JSON, nullable=False)
    formula: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    tolerance_percent: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_TOLERANCE_PERCENT
    )
    max_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_MAX_ATTEMPTS
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    submissions = relationship(
        "Submission", back_populates="problem", cascade="all, delete-orphan"
    )
