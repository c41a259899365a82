"""Shared enums for models and schemas."""
import enum


class UserRole(enum.Enum):
    teacher = "teacher"
    student = "student"


class CourseType(enum.Enum):
    lecture = "lecture"
    laboratory = "laboratory"
    lec_lab = "lec_lab"


class ContentType(enum.Enum):
    """Payload tag of a lesson."""
    text = "text"
    video = "video"
    link = "link"
    file = "file"


class ItemType(enum.Enum):
    """Rubric-graded learning item flavours."""
    assignment = "Assignment"
    activity = "Activity"
