"""SQLAlchemy models for iLearn."""

from .enums import UserRole, CourseType, ContentType, ItemType
from .user import User, RefreshToken, LoginAttempt
from .course import Course, Block
from .content import Lesson, Quiz, Assignment
from .enrollment import Enrollment, Submission

__all__ = [
    "UserRole",
    "CourseType",
    "ContentType",
    "ItemType",
    "User",
    "RefreshToken",
    "LoginAttempt",
    "Course",
    "Block",
    "Lesson",
    "Quiz",
    "Assignment",
    "Enrollment",
    "Submission",
]
