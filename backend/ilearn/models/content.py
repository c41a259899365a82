"""Lesson, Quiz and Assignment models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Float, Integer, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..database import Base
from .common import new_id, utcnow
from .enums import ContentType, ItemType


class Lesson(Base):
    """Lesson model."""
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    content_type = Column(SQLEnum(ContentType), default=ContentType.text, nullable=False)
    content = Column(Text, nullable=False)
    learning_outcome = Column(Text)
    objectives = Column(Text)
    sdg_integration = Column(Text)
    internationalization = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="lessons")

    def __repr__(self):
        return f"<Lesson(id={self.id}, title='{self.title}')>"

    @property
    def resource_path(self) -> str:
        return f"users/{self.teacher_id}/courses/{self.course_id}/lessons/{self.id}"


class Quiz(Base):
    """Multiple-choice quiz attached to a grading period."""
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    grading_period = Column(String(100), nullable=False)
    questions = Column(JSON, nullable=False, default=list)
    points_possible = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="quizzes")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}')>"

    @property
    def resource_path(self) -> str:
        return f"users/{self.teacher_id}/courses/{self.course_id}/quizzes/{self.id}"

    @property
    def question_count(self) -> int:
        return len(self.questions) if self.questions else 0


class Assignment(Base):
    """Rubric-graded assignment or activity."""
    __tablename__ = "assignments"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    item_type = Column(SQLEnum(ItemType), default=ItemType.assignment, nullable=False)
    description = Column(Text)
    objectives = Column(Text)
    deliverables = Column(Text)
    due_date = Column(DateTime, nullable=True)
    closing_date = Column(DateTime, nullable=True)
    rubric = Column(JSON, nullable=False, default=list)
    points_possible = Column(Float, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="assignments")
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def resource_path(self) -> str:
        return f"users/{self.teacher_id}/courses/{self.course_id}/assignments/{self.id}"

    @property
    def submission_count(self) -> int:
        """Get count of submissions for this assignment."""
        return len(self.submissions)

    def get_criterion_by_name(self, name: str):
        """Get a specific rubric criterion by name."""
        for criterion in self.rubric or []:
            if criterion.get('name') == name:
                return criterion
        return None
