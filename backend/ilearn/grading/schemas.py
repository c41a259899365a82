"""Schemas for submissions and the speed grader."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator


class SubmissionCreate(BaseModel):
    submission_url: HttpUrl


class SubmissionResponse(BaseModel):
    id: str
    assignment_id: str
    course_id: str
    student_id: str
    submission_url: str
    submitted_at: datetime
    grade: Optional[float]
    feedback: list[str]
    selections: dict[str, str]
    graded_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class GradingQueueItem(BaseModel):
    assignment_id: str
    course_id: str
    title: str
    course_code: str
    submissions: int
    total: int
    graded: int


class StudentInfo(BaseModel):
    id: str
    name: Optional[str]
    email: str


class SpeedGraderView(BaseModel):
    submission: SubmissionResponse
    student: StudentInfo
    assignment_title: str
    rubric: list[dict]
    total_points: float
    calculated_grade: float
    comment_bank: list[str]


class GradeSubmission(BaseModel):
    """Either per-criterion level selections or toggled criteria, not both."""
    selections: dict[str, str] = Field(default_factory=dict)
    selected_criteria: list[str] = Field(default_factory=list)
    final_grade: Optional[float] = Field(None, ge=0)
    feedback: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def one_selection_mode(self):
        if self.selections and self.selected_criteria:
            raise ValueError("Use either selections or selected_criteria, not both")
        return self
