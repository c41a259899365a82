"""Student enrollment into blocks."""
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..courses.service import build_learning_path
from ..courses.schemas import LearningPathItem
from ..models import Enrollment, User
from .joincodes import find_block_by_code
from .schemas import EnrolledCourse

logger = logging.getLogger(__name__)


def is_enrolled(db: Session, student_id: str, course_id: str) -> bool:
    """Whether the student holds an enrollment in any block of the course."""
    return (
        db.query(Enrollment.id)
        .filter(Enrollment.student_id == student_id, Enrollment.course_id == course_id)
        .first()
        is not None
    )


class EnrollmentService:
    def __init__(self, db: Session, student: User):
        self.db = db
        self.student = student

    def join_block(self, code: str) -> Enrollment:
        """Enroll the student into the block holding ``code``."""
        block = find_block_by_code(self.db, code)
        if not block:
            logger.info(f"Join attempt with unknown code {code}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invalid block code. No block found with this code.",
            )

        existing = (
            self.db.query(Enrollment)
            .filter(Enrollment.student_id == self.student.id, Enrollment.block_id == block.id)
            .first()
        )
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You are already enrolled in this block.",
            )

        enrollment = Enrollment(
            student_id=self.student.id,
            block_id=block.id,
            course_id=block.course_id,
            teacher_id=block.teacher_id,
        )
        self.db.add(enrollment)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You are already enrolled in this block.",
            )
        self.db.refresh(enrollment)
        logger.info(f"Student {self.student.id} joined block {block.id}")
        return enrollment

    def get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = (
            self.db.query(Enrollment)
            .filter(Enrollment.id == enrollment_id, Enrollment.student_id == self.student.id)
            .first()
        )
        if not enrollment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
        return enrollment

    def list_enrollments(self) -> list[EnrolledCourse]:
        enrollments = (
            self.db.query(Enrollment)
            .filter(Enrollment.student_id == self.student.id)
            .order_by(Enrollment.created_at.asc())
            .all()
        )
        return [self._enrolled_course(enrollment) for enrollment in enrollments]

    def learning_path(self, enrollment_id: str) -> list[LearningPathItem]:
        enrollment = self.get_enrollment(enrollment_id)
        return build_learning_path(self.db, enrollment.course)

    @staticmethod
    def _enrolled_course(enrollment: Enrollment) -> EnrolledCourse:
        course = enrollment.course
        block = enrollment.block
        return EnrolledCourse(
            enrollment_id=enrollment.id,
            course_id=course.id,
            course_title=course.title,
            course_code=course.course_code,
            description=course.description,
            block_id=block.id,
            block_name=block.name,
            schedule=block.schedule,
            teacher_name=course.teacher.display_name if course.teacher else None,
            enrolled_at=enrollment.created_at,
        )
