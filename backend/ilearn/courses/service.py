"""Course, block and content operations scoped to the owning teacher."""
import logging
from typing import Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..enrollment.joincodes import block_code_exists, generate_join_code
from ..errors import deny
from ..grading.policy import GradingPolicyError, compute_final_grade, default_grading_policy
from ..grading.rubric import rubric_total
from ..models import Assignment, Block, Course, Enrollment, Lesson, Quiz, User
from .schemas import (
    AssignmentCreate, AssignmentUpdate, BlockCreate, BlockUpdate, CourseCreate, CourseUpdate,
    FinalGradeRequest, FinalGradeResponse, GradingPolicyUpdate, LearningPathItem, LessonCreate, LessonUpdate,
    QuizCreate, QuizUpdate, RosterEntry,
)

logger = logging.getLogger(__name__)

QUIZ_POINTS_PER_QUESTION = 10

Item = TypeVar("Item", Lesson, Quiz, Assignment)


def course_path(uid: str, course_id: str = None) -> str:
    base = f"users/{uid}/courses"
    return f"{base}/{course_id}" if course_id else base


class CourseService:
    """Everything lives under ``users/{uid}/courses``; only ``uid`` may touch it."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # --- access ---

    def _require_owner(self, uid: str, operation: str, path: str) -> None:
        if uid != self.user.id or not self.user.is_teacher:
            raise deny(operation, path)

    def _commit(self, obj=None):
        self.db.commit()
        if obj is not None:
            self.db.refresh(obj)
        return obj

    # --- courses ---

    def list_courses(self, uid: str) -> list[Course]:
        self._require_owner(uid, "list", course_path(uid))
        return (
            self.db.query(Course)
            .filter(Course.teacher_id == uid)
            .order_by(Course.created_at.asc())
            .all()
        )

    def create_course(self, uid: str, data: CourseCreate) -> Course:
        self._require_owner(uid, "create", course_path(uid))
        values = data.model_dump(exclude={"grading_policy", "syllabus_link"})
        policy = (
            [term.model_dump() for term in data.grading_policy]
            if data.grading_policy is not None
            else default_grading_policy()
        )
        course = Course(
            **values,
            syllabus_link=str(data.syllabus_link),
            grading_policy=policy,
            teacher_id=uid,
        )
        self.db.add(course)
        self._commit(course)
        logger.info(f"Course {course.id} created by {uid}")
        return course

    def get_course(self, uid: str, course_id: str, operation: str = "get") -> Course:
        self._require_owner(uid, operation, course_path(uid, course_id))
        course = (
            self.db.query(Course)
            .filter(Course.id == course_id, Course.teacher_id == uid)
            .first()
        )
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
        return course

    def update_course(self, uid: str, course_id: str, data: CourseUpdate) -> Course:
        course = self.get_course(uid, course_id, "update")
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "syllabus_link" and value is not None:
                value = str(value)
            setattr(course, field, value)
        return self._commit(course)

    def delete_course(self, uid: str, course_id: str) -> None:
        course = self.get_course(uid, course_id, "delete")
        self.db.delete(course)
        self._commit()
        logger.info(f"Course {course_id} deleted by {uid}")

    def update_grading_policy(self, uid: str, course_id: str, data: GradingPolicyUpdate) -> Course:
        course = self.get_course(uid, course_id, "update")
        course.grading_policy = [term.model_dump() for term in data.terms]
        return self._commit(course)

    def final_grade(self, uid: str, course_id: str, data: FinalGradeRequest) -> FinalGradeResponse:
        """Apply the course's grading policy to the given component percentages."""
        course = self.get_course(uid, course_id)
        unknown = sorted(set(data.scores) - set(course.term_names))
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown grading period(s): {', '.join(unknown)}",
            )
        try:
            final = compute_final_grade(course.grading_policy, data.scores)
        except GradingPolicyError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return FinalGradeResponse(course_id=course.id, final_grade=final)

    # --- blocks ---

    def list_blocks(self, uid: str, course_id: str) -> list[Block]:
        course = self.get_course(uid, course_id, "list")
        return (
            self.db.query(Block)
            .filter(Block.course_id == course.id)
            .order_by(Block.created_at.asc())
            .all()
        )

    def create_block(self, uid: str, course_id: str, data: BlockCreate) -> Block:
        course = self.get_course(uid, course_id, "create")
        code = generate_join_code(lambda candidate: block_code_exists(self.db, candidate))
        block = Block(
            course_id=course.id,
            teacher_id=uid,
            name=data.name,
            schedule=data.schedule,
            code=code,
        )
        self.db.add(block)
        self._commit(block)
        logger.info(f"Block {block.id} created with code {code}")
        return block

    def get_block(self, uid: str, course_id: str, block_id: str, operation: str = "get") -> Block:
        course = self.get_course(uid, course_id, operation)
        block = (
            self.db.query(Block)
            .filter(Block.id == block_id, Block.course_id == course.id)
            .first()
        )
        if not block:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Block not found")
        return block

    def update_block(self, uid: str, course_id: str, block_id: str, data: BlockUpdate) -> Block:
        block = self.get_block(uid, course_id, block_id, "update")
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(block, field, value)
        return self._commit(block)

    def delete_block(self, uid: str, course_id: str, block_id: str) -> None:
        block = self.get_block(uid, course_id, block_id, "delete")
        self.db.delete(block)
        self._commit()

    def block_roster(self, uid: str, course_id: str, block_id: str) -> list[RosterEntry]:
        block = self.get_block(uid, course_id, block_id, "list")
        enrollments = (
            self.db.query(Enrollment)
            .filter(Enrollment.block_id == block.id)
            .order_by(Enrollment.created_at.asc())
            .all()
        )
        return [
            RosterEntry(
                enrollment_id=enrollment.id,
                student_id=enrollment.student_id,
                email=enrollment.student.email,
                display_name=enrollment.student.display_name,
                enrolled_at=enrollment.created_at,
            )
            for enrollment in enrollments
        ]

    # --- lessons, quizzes, assignments ---

    def _list_items(self, model: Type[Item], uid: str, course_id: str) -> list[Item]:
        course = self.get_course(uid, course_id, "list")
        return (
            self.db.query(model)
            .filter(model.course_id == course.id)
            .order_by(model.created_at.asc())
            .all()
        )

    def _get_item(self, model: Type[Item], uid: str, course_id: str, item_id: str, operation: str = "get") -> Item:
        course = self.get_course(uid, course_id, operation)
        item = (
            self.db.query(model)
            .filter(model.id == item_id, model.course_id == course.id)
            .first()
        )
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{model.__name__} not found",
            )
        return item

    def _delete_item(self, model: Type[Item], uid: str, course_id: str, item_id: str) -> None:
        item = self._get_item(model, uid, course_id, item_id, "delete")
        self.db.delete(item)
        self._commit()

    def list_lessons(self, uid: str, course_id: str) -> list[Lesson]:
        return self._list_items(Lesson, uid, course_id)

    def create_lesson(self, uid: str, course_id: str, data: LessonCreate) -> Lesson:
        course = self.get_course(uid, course_id, "create")
        lesson = Lesson(**data.model_dump(), course_id=course.id, teacher_id=uid)
        self.db.add(lesson)
        return self._commit(lesson)

    def get_lesson(self, uid: str, course_id: str, lesson_id: str) -> Lesson:
        return self._get_item(Lesson, uid, course_id, lesson_id)

    def update_lesson(self, uid: str, course_id: str, lesson_id: str, data: LessonUpdate) -> Lesson:
        lesson = self._get_item(Lesson, uid, course_id, lesson_id, "update")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(lesson, field, value)
        return self._commit(lesson)

    def delete_lesson(self, uid: str, course_id: str, lesson_id: str) -> None:
        self._delete_item(Lesson, uid, course_id, lesson_id)

    def list_assignments(self, uid: str, course_id: str) -> list[Assignment]:
        return self._list_items(Assignment, uid, course_id)

    def create_assignment(self, uid: str, course_id: str, data: AssignmentCreate) -> Assignment:
        course = self.get_course(uid, course_id, "create")
        rubric = [criterion.model_dump() for criterion in data.rubric]
        assignment = Assignment(
            **data.model_dump(exclude={"rubric"}),
            rubric=rubric,
            points_possible=rubric_total(rubric),
            course_id=course.id,
            teacher_id=uid,
        )
        self.db.add(assignment)
        return self._commit(assignment)

    def get_assignment(self, uid: str, course_id: str, assignment_id: str) -> Assignment:
        return self._get_item(Assignment, uid, course_id, assignment_id)

    def update_assignment(self, uid: str, course_id: str, assignment_id: str, data: AssignmentUpdate) -> Assignment:
        assignment = self._get_item(Assignment, uid, course_id, assignment_id, "update")
        changes = data.model_dump(exclude_unset=True)
        if "rubric" in changes and changes["rubric"] is not None:
            assignment.points_possible = rubric_total(changes["rubric"])
        for field, value in changes.items():
            setattr(assignment, field, value)

        if assignment.due_date and assignment.closing_date and assignment.closing_date < assignment.due_date:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Closing date must be on or after the due date.",
            )
        return self._commit(assignment)

    def delete_assignment(self, uid: str, course_id: str, assignment_id: str) -> None:
        self._delete_item(Assignment, uid, course_id, assignment_id)

    def _check_grading_period(self, course: Course, grading_period: str) -> None:
        if grading_period not in course.term_names:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown grading period '{grading_period}'. Choose one of: {', '.join(course.term_names)}",
            )

    def list_quizzes(self, uid: str, course_id: str) -> list[Quiz]:
        return self._list_items(Quiz, uid, course_id)

    def create_quiz(self, uid: str, course_id: str, data: QuizCreate) -> Quiz:
        course = self.get_course(uid, course_id, "create")
        self._check_grading_period(course, data.grading_period)
        quiz = Quiz(
            title=data.title,
            grading_period=data.grading_period,
            questions=[question.model_dump() for question in data.questions],
            points_possible=len(data.questions) * QUIZ_POINTS_PER_QUESTION,
            course_id=course.id,
            teacher_id=uid,
        )
        self.db.add(quiz)
        return self._commit(quiz)

    def get_quiz(self, uid: str, course_id: str, quiz_id: str) -> Quiz:
        return self._get_item(Quiz, uid, course_id, quiz_id)

    def update_quiz(self, uid: str, course_id: str, quiz_id: str, data: QuizUpdate) -> Quiz:
        quiz = self._get_item(Quiz, uid, course_id, quiz_id, "update")
        if data.title is not None:
            quiz.title = data.title
        if data.grading_period is not None:
            self._check_grading_period(quiz.course, data.grading_period)
            quiz.grading_period = data.grading_period
        if data.questions is not None:
            quiz.questions = [question.model_dump() for question in data.questions]
            quiz.points_possible = len(data.questions) * QUIZ_POINTS_PER_QUESTION
        return self._commit(quiz)

    def delete_quiz(self, uid: str, course_id: str, quiz_id: str) -> None:
        self._delete_item(Quiz, uid, course_id, quiz_id)

    # --- learning path ---

    def learning_path(self, uid: str, course_id: str) -> list[LearningPathItem]:
        course = self.get_course(uid, course_id, "list")
        return build_learning_path(self.db, course)


def build_learning_path(db: Session, course: Course) -> list[LearningPathItem]:
    """Lessons, assignments and quizzes of a course in creation order."""
    items = []
    for model, label in ((Lesson, "Lesson"), (Assignment, "Assignment"), (Quiz, "Quiz")):
        for item in db.query(model).filter(model.course_id == course.id).all():
            items.append(LearningPathItem(id=item.id, title=item.title, type=label, created_at=item.created_at))
    return sorted(items, key=lambda item: item.created_at)
