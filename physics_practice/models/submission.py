from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from physics_practice.db.base_class import Base


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    student_username = Column(
        String(50), ForeignKey("users.username", ondelete="CASCADE"), nullable=False, index=True
    )
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False, index=True)

    # frozen variable values, written once when the row is created
    instance = Column(JSON, nullable=False)

    # Grading fields (null until the first graded attempt)
    user_answer = Column(Float, nullable=True)
    correct_answer = Column(Float, nullable=True)
    is_correct = Column(Boolean, nullable=True)
    percent_diff = Column(Float, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "student_username",
            "assignment_id",
            "problem_id",
            name="uq_submission_student_assignment_problem",
        ),
    )

    student = relationship("User", back_populates="submissions")
    assignment = relationship("Assignment", back_populates="submissions")
    problem = relationship("Problem", back_populates="submissions")
