"""Submission and grading endpoints for both roles."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import role_guard
from ..database import get_db
from ..models import User
from .schemas import GradeSubmission, GradingQueueItem, SpeedGraderView, SubmissionCreate, SubmissionResponse
from .service import GradingService, SubmissionService

student_router = APIRouter(prefix="/student/assignments", tags=["Submissions"])
router = APIRouter(prefix="/teacher/grading", tags=["Grading"])


def get_submission_service(
    db: Session = Depends(get_db),
    student: User = Depends(role_guard),
) -> SubmissionService:
    return SubmissionService(db, student)


def get_grading_service(
    db: Session = Depends(get_db),
    teacher: User = Depends(role_guard),
) -> GradingService:
    return GradingService(db, teacher)


@student_router.post(
    "/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_assignment(
    assignment_id: str,
    data: SubmissionCreate,
    service: SubmissionService = Depends(get_submission_service),
):
    """Hand in a link to the work; allowed until the closing date."""
    return service.submit(assignment_id, data)


@router.get("", response_model=list[GradingQueueItem])
async def get_grading_queue(service: GradingService = Depends(get_grading_service)):
    """Every assignment the teacher owns with submitted and graded counts."""
    return service.grading_queue()


@router.get("/{submission_id}", response_model=SpeedGraderView)
async def get_speed_grader(submission_id: str, service: GradingService = Depends(get_grading_service)):
    return service.speed_grader(submission_id)


@router.post("/{submission_id}", response_model=SubmissionResponse)
async def grade_submission(
    submission_id: str,
    data: GradeSubmission,
    service: GradingService = Depends(get_grading_service),
):
    return service.grade(submission_id, data)
