"""Course and Block models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..database import Base
from .common import new_id, utcnow
from .enums import CourseType


class Course(Base):
    """Course blueprint owned by a teacher."""
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=new_id)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    course_code = Column(String(50), nullable=False)
    units = Column(Integer, default=3)
    course_type = Column(SQLEnum(CourseType), default=CourseType.lecture)
    syllabus_link = Column(String(500))
    grading_policy = Column(JSON, default=list)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    teacher = relationship("User", back_populates="courses")
    blocks = relationship("Block", back_populates="course", cascade="all, delete-orphan")
    lessons = relationship("Lesson", back_populates="course", cascade="all, delete-orphan")
    quizzes = relationship("Quiz", back_populates="course", cascade="all, delete-orphan")
    assignments = relationship("Assignment", back_populates="course", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course(id={self.id}, title='{self.title}')>"

    @property
    def resource_path(self) -> str:
        return f"users/{self.teacher_id}/courses/{self.id}"

    @property
    def is_lab_course(self) -> bool:
        return self.course_type in (CourseType.laboratory, CourseType.lec_lab)

    @property
    def term_names(self) -> list[str]:
        return [term.get("term") for term in self.grading_policy or []]


class Block(Base):
    """A section of a course that students join with its code."""
    __tablename__ = "blocks"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    name = Column(String(100), nullable=False)
    schedule = Column(Text, nullable=False)
    code = Column(String(12), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="blocks")
    enrollments = relationship("Enrollment", back_populates="block", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Block(id={self.id}, code='{self.code}')>"

    @property
    def resource_path(self) -> str:
        return f"users/{self.teacher_id}/courses/{self.course_id}/blocks/{self.id}"

    @property
    def schedule_lines(self) -> list[str]:
        return [line.strip() for line in (self.schedule or "").splitlines() if line.strip()]

    @property
    def student_count(self) -> int:
        return len(self.enrollments)
