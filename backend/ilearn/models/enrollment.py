"""Enrollment and Submission models."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Float, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from .common import new_id, utcnow


class Enrollment(Base):
    """Links a student to a block, its course and the owning teacher."""
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("student_id", "block_id", name="uq_enrollment_student_block"),)

    id = Column(String(36), primary_key=True, default=new_id)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    block_id = Column(String(36), ForeignKey("blocks.id"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    student = relationship("User", back_populates="enrollments", foreign_keys=[student_id])
    block = relationship("Block", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
    submissions = relationship("Submission", back_populates="enrollment")

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student_id={self.student_id}, block_id={self.block_id})>"

    @property
    def resource_path(self) -> str:
        return f"users/{self.student_id}/enrollments/{self.id}"

    @property
    def block_path(self) -> str:
        return f"users/{self.teacher_id}/courses/{self.course_id}/blocks/{self.block_id}"


class Submission(Base):
    """Student work for an assignment, plus the grade once marked."""
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=new_id)
    assignment_id = Column(String(36), ForeignKey("assignments.id"), nullable=False, index=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    enrollment_id = Column(String(36), ForeignKey("enrollments.id"), nullable=True)
    submission_url = Column(String(500), nullable=False)
    submitted_at = Column(DateTime, default=utcnow)
    grade = Column(Float, nullable=True)
    feedback = Column(JSON, default=list)
    selections = Column(JSON, default=dict)
    graded_at = Column(DateTime, nullable=True)

    assignment = relationship("Assignment", back_populates="submissions")
    enrollment = relationship("Enrollment", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id])

    def __repr__(self):
        return f"<Submission(id={self.id}, student_id={self.student_id})>"

    @property
    def resource_path(self) -> str:
        return (
            f"users/{self.teacher_id}/courses/{self.course_id}"
            f"/assignments/{self.assignment_id}/submissions/{self.id}"
        )

    @property
    def is_graded(self) -> bool:
        return self.grade is not None
