from sqlalchemy import JSON, Column, Date, DateTime, Integer, String, Text, func
from sqlalchemy.orm import relationship

from physics_practice.db.base_class import Base


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    # ordered list of problem ids
    problem_ids = Column(JSON, nullable=False, default=list)
    due_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
