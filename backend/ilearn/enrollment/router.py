"""Student-facing enrollment endpoints."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import role_guard
from ..courses.schemas import LearningPathItem
from ..database import get_db
from ..models import User
from .schemas import EnrolledCourse, EnrollmentResponse, JoinBlockRequest
from .service import EnrollmentService

router = APIRouter(prefix="/student/enrollments", tags=["Enrollment"])


def get_enrollment_service(
    db: Session = Depends(get_db),
    student: User = Depends(role_guard),
) -> EnrollmentService:
    return EnrollmentService(db, student)


@router.post("", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def join_block(data: JoinBlockRequest, service: EnrollmentService = Depends(get_enrollment_service)):
    """Join a block using the code the teacher shared."""
    return service.join_block(data.normalized_code())


@router.get("", response_model=list[EnrolledCourse])
async def list_enrollments(service: EnrollmentService = Depends(get_enrollment_service)):
    return service.list_enrollments()


@router.get("/{enrollment_id}/learning-path", response_model=list[LearningPathItem])
async def get_learning_path(enrollment_id: str, service: EnrollmentService = Depends(get_enrollment_service)):
    """Course content for an enrollment, oldest first."""
    return service.learning_path(enrollment_id)
