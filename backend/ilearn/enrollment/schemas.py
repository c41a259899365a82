"""Schemas for joining blocks and listing enrollments."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class JoinBlockRequest(BaseModel):
    # Codes are case-sensitive; surrounding whitespace from copy/paste is dropped
    block_code: str = Field(..., min_length=3, max_length=12)

    def normalized_code(self) -> str:
        return self.block_code.strip()


class EnrollmentResponse(BaseModel):
    id: str
    student_id: str
    block_id: str
    course_id: str
    teacher_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnrolledCourse(BaseModel):
    """Enrollment joined with the course and block it points at."""
    enrollment_id: str
    course_id: str
    course_title: str
    course_code: str
    description: Optional[str]
    block_id: str
    block_name: str
    schedule: str
    teacher_name: Optional[str]
    enrolled_at: datetime
