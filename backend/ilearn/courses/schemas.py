"""Request/response schemas for courses, blocks and course content."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator

from ..ai import QuizQuestion
from ..grading.policy import GradingPolicyError, validate_grading_policy
from ..grading.rubric import validate_rubric
from ..models import ContentType, CourseType, ItemType
from ..models.common import as_naive_utc


# --- Grading policy ---

class GradingTerm(BaseModel):
    term: str = Field(..., min_length=1, max_length=100)
    weight: int = Field(..., ge=0, le=100)
    components: dict[str, int]

    @field_validator("components")
    @classmethod
    def component_weights_in_range(cls, v: dict[str, int]) -> dict[str, int]:
        for name, weight in v.items():
            if weight < 0 or weight > 100:
                raise ValueError(f"Component '{name}' weight must be between 0 and 100")
        return v


def _check_policy(terms: list[GradingTerm]) -> None:
    try:
        validate_grading_policy([term.model_dump() for term in terms])
    except GradingPolicyError as e:
        raise ValueError(str(e))


class GradingPolicyUpdate(BaseModel):
    terms: list[GradingTerm]

    @model_validator(mode="after")
    def weights_total_100(self):
        _check_policy(self.terms)
        return self


class FinalGradeRequest(BaseModel):
    """Component percentages per term, e.g. ``{"Midterm": {"quizzes": 85}}``."""
    scores: dict[str, dict[str, float]]

    @field_validator("scores")
    @classmethod
    def percentages_in_range(cls, v: dict[str, dict[str, float]]) -> dict[str, dict[str, float]]:
        for term, components in v.items():
            for name, score in components.items():
                if score < 0 or score > 100:
                    raise ValueError(f"{term} {name} must be a percentage between 0 and 100")
        return v


class FinalGradeResponse(BaseModel):
    course_id: str
    final_grade: float


def _reject_null(v):
    if v is None:
        raise ValueError("This field cannot be cleared")
    return v


# --- Courses ---

class CourseCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=255)
    description: Optional[str] = None
    syllabus_link: HttpUrl
    course_code: str = Field(..., min_length=3, max_length=50)
    units: int = Field(3, ge=1, le=5)
    course_type: CourseType = CourseType.lecture
    grading_policy: Optional[list[GradingTerm]] = None

    @model_validator(mode="after")
    def policy_is_valid(self):
        if self.grading_policy is not None:
            _check_policy(self.grading_policy)
        return self


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = None
    syllabus_link: Optional[HttpUrl] = None
    course_code: Optional[str] = Field(None, min_length=3, max_length=50)
    units: Optional[int] = Field(None, ge=1, le=5)
    course_type: Optional[CourseType] = None

    @field_validator("title", "course_code", "units", "course_type")
    @classmethod
    def not_cleared(cls, v):
        return _reject_null(v)


class CourseResponse(BaseModel):
    id: str
    teacher_id: str
    title: str
    description: Optional[str]
    course_code: str
    units: int
    course_type: CourseType
    syllabus_link: Optional[str]
    grading_policy: list[dict]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Blocks ---

class BlockCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    schedule: str = Field(..., min_length=5)


class BlockUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    schedule: Optional[str] = Field(None, min_length=5)


class BlockResponse(BaseModel):
    id: str
    course_id: str
    teacher_id: str
    name: str
    schedule: str
    code: str
    student_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RosterEntry(BaseModel):
    enrollment_id: str
    student_id: str
    email: str
    display_name: Optional[str]
    enrolled_at: datetime


# --- Lessons ---

class LessonCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    content_type: ContentType = ContentType.text
    content: str = Field(..., min_length=10)
    learning_outcome: str = Field(..., min_length=10)
    objectives: str = Field(..., min_length=10)
    sdg_integration: Optional[str] = None
    internationalization: Optional[str] = None


class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    content_type: Optional[ContentType] = None
    content: Optional[str] = Field(None, min_length=10)
    learning_outcome: Optional[str] = Field(None, min_length=10)
    objectives: Optional[str] = Field(None, min_length=10)
    sdg_integration: Optional[str] = None
    internationalization: Optional[str] = None

    @field_validator("title", "content_type", "content", "learning_outcome", "objectives")
    @classmethod
    def not_cleared(cls, v):
        return _reject_null(v)


class LessonResponse(BaseModel):
    id: str
    course_id: str
    title: str
    content_type: ContentType
    content: str
    learning_outcome: Optional[str]
    objectives: Optional[str]
    sdg_integration: Optional[str]
    internationalization: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Assignments ---

class RubricLevel(BaseModel):
    label: str = Field(..., min_length=1)
    description: str = ""
    points: float = Field(..., ge=0)


class RubricCriterion(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    levels: list[RubricLevel] = Field(..., min_length=1)


def _check_rubric(rubric: list[RubricCriterion]) -> None:
    if not rubric:
        return
    ok, message = validate_rubric([criterion.model_dump() for criterion in rubric])
    if not ok:
        raise ValueError(message)


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    item_type: ItemType = ItemType.assignment
    description: Optional[str] = None
    objectives: Optional[str] = None
    deliverables: Optional[str] = None
    due_date: Optional[datetime] = None
    closing_date: Optional[datetime] = None
    rubric: list[RubricCriterion] = Field(default_factory=list)

    @field_validator("due_date", "closing_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v)

    @model_validator(mode="after")
    def check_dates_and_rubric(self):
        if self.due_date and self.closing_date and self.closing_date < self.due_date:
            raise ValueError("Closing date must be on or after the due date.")
        _check_rubric(self.rubric)
        return self


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = None
    objectives: Optional[str] = None
    deliverables: Optional[str] = None
    due_date: Optional[datetime] = None
    closing_date: Optional[datetime] = None
    rubric: Optional[list[RubricCriterion]] = None

    @field_validator("title", "rubric")
    @classmethod
    def not_cleared(cls, v):
        return _reject_null(v)

    @field_validator("due_date", "closing_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v)

    @model_validator(mode="after")
    def check_rubric(self):
        if self.rubric is not None:
            _check_rubric(self.rubric)
        return self


class AssignmentResponse(BaseModel):
    id: str
    course_id: str
    title: str
    item_type: ItemType
    description: Optional[str]
    objectives: Optional[str]
    deliverables: Optional[str]
    due_date: Optional[datetime]
    closing_date: Optional[datetime]
    rubric: list[dict]
    points_possible: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Quizzes ---

class QuizCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    grading_period: str = Field(..., min_length=1)
    questions: list[QuizQuestion] = Field(..., min_length=1)


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    grading_period: Optional[str] = Field(None, min_length=1)
    questions: Optional[list[QuizQuestion]] = Field(None, min_length=1)


class QuizResponse(BaseModel):
    id: str
    course_id: str
    title: str
    grading_period: str
    questions: list[QuizQuestion]
    points_possible: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- Learning path ---

class LearningPathItem(BaseModel):
    id: str
    title: str
    type: Literal["Lesson", "Assignment", "Quiz"]
    created_at: datetime
