"""Submissions, the grading queue and the speed grader."""
import logging

from fastapi import HTTPException, status
from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from ..enrollment.service import is_enrolled
from ..errors import deny
from ..models import Assignment, Enrollment, Submission, User
from ..models.common import utcnow
from .rubric import rubric_total, selected_points, top_level_selections
from .schemas import (
    GradeSubmission, GradingQueueItem, SpeedGraderView, StudentInfo, SubmissionCreate, SubmissionResponse,
)

logger = logging.getLogger(__name__)

COMMENT_BANK = [
    "Great work! Your analysis is thorough and well-supported.",
    "Good effort, but please review the feedback on your methodology.",
    "Consider expanding on your conclusion.",
    "Excellent use of evidence to support your claims.",
    "Please pay closer attention to the formatting guidelines.",
    "Your thesis is clear, but the supporting paragraphs could be more focused.",
]


class SubmissionService:
    """Student side: hand in work for an assignment."""

    def __init__(self, db: Session, student: User):
        self.db = db
        self.student = student

    def submit(self, assignment_id: str, data: SubmissionCreate) -> Submission:
        assignment = self.db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if not assignment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")

        path = f"{assignment.resource_path}/submissions"
        if not is_enrolled(self.db, self.student.id, assignment.course_id):
            raise deny("create", path)

        if assignment.closing_date and utcnow() > assignment.closing_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Submissions are closed for this assignment.",
            )

        submission = (
            self.db.query(Submission)
            .filter(Submission.assignment_id == assignment.id, Submission.student_id == self.student.id)
            .first()
        )
        if submission and submission.is_graded:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This submission has already been graded.",
            )

        if submission is None:
            enrollment = (
                self.db.query(Enrollment)
                .filter(Enrollment.student_id == self.student.id, Enrollment.course_id == assignment.course_id)
                .first()
            )
            submission = Submission(
                assignment_id=assignment.id,
                course_id=assignment.course_id,
                teacher_id=assignment.teacher_id,
                student_id=self.student.id,
                enrollment_id=enrollment.id,
                submission_url=str(data.submission_url),
            )
            self.db.add(submission)
        else:
            # Resubmission before grading replaces the link
            submission.submission_url = str(data.submission_url)
            submission.submitted_at = utcnow()

        self.db.commit()
        self.db.refresh(submission)
        logger.info(f"Student {self.student.id} submitted assignment {assignment.id}")
        return submission


class GradingService:
    """Teacher side: the queue, the speed grader and grade entry."""

    def __init__(self, db: Session, teacher: User):
        self.db = db
        self.teacher = teacher

    def grading_queue(self) -> list[GradingQueueItem]:
        assignments = (
            self.db.query(Assignment)
            .filter(Assignment.teacher_id == self.teacher.id)
            .order_by(Assignment.created_at.asc())
            .all()
        )
        queue = []
        for assignment in assignments:
            # A student may sit in several blocks of one course
            enrolled = (
                self.db.query(func.count(distinct(Enrollment.student_id)))
                .filter(Enrollment.course_id == assignment.course_id)
                .scalar()
            )
            queue.append(
                GradingQueueItem(
                    assignment_id=assignment.id,
                    course_id=assignment.course_id,
                    title=assignment.title,
                    course_code=assignment.course.course_code,
                    submissions=assignment.submission_count,
                    total=enrolled,
                    graded=sum(1 for submission in assignment.submissions if submission.is_graded),
                )
            )
        return queue

    def get_submission(self, submission_id: str, operation: str = "get") -> Submission:
        submission = self.db.query(Submission).filter(Submission.id == submission_id).first()
        if not submission:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
        if submission.teacher_id != self.teacher.id:
            raise deny(operation, submission.resource_path)
        return submission

    def speed_grader(self, submission_id: str) -> SpeedGraderView:
        submission = self.get_submission(submission_id)
        assignment = submission.assignment
        rubric = assignment.rubric or []

        if submission.is_graded:
            calculated = submission.grade
        else:
            calculated = selected_points(rubric, submission.selections or {})

        return SpeedGraderView(
            submission=SubmissionResponse.model_validate(submission),
            student=StudentInfo(
                id=submission.student.id,
                name=submission.student.display_name,
                email=submission.student.email,
            ),
            assignment_title=assignment.title,
            rubric=rubric,
            total_points=rubric_total(rubric),
            calculated_grade=calculated,
            comment_bank=COMMENT_BANK,
        )

    def grade(self, submission_id: str, data: GradeSubmission) -> Submission:
        """Store the grade from rubric selections, optionally overridden."""
        submission = self.get_submission(submission_id, "update")
        rubric = submission.assignment.rubric or []
        total = rubric_total(rubric)

        try:
            if data.selected_criteria:
                selections = top_level_selections(rubric, data.selected_criteria)
            else:
                selections = dict(data.selections)
            calculated = selected_points(rubric, selections)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        final_grade = calculated if data.final_grade is None else data.final_grade
        if final_grade < 0 or final_grade > total:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Final grade must be between 0 and {total}",
            )

        submission.selections = selections
        submission.grade = final_grade
        submission.feedback = list(data.feedback)
        submission.graded_at = utcnow()
        self.db.commit()
        self.db.refresh(submission)
        logger.info(f"Submission {submission.id} graded {final_grade}/{total}")
        return submission
