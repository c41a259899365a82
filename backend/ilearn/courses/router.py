"""Teacher-owned course tree: courses, blocks, lessons, assignments, quizzes."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..ai import AIClient, GenerateQuizQuestionsInput, GenerateQuizQuestionsOutput, generate_quiz_questions, get_ai_client
from ..auth import get_current_active_user
from ..database import get_db
from ..errors import AIServiceError
from ..models import User
from .schemas import (
    AssignmentCreate, AssignmentResponse, AssignmentUpdate, BlockCreate, BlockResponse, BlockUpdate,
    CourseCreate, CourseResponse, CourseUpdate, FinalGradeRequest, FinalGradeResponse, GradingPolicyUpdate,
    LearningPathItem, LessonCreate, LessonResponse, LessonUpdate, QuizCreate, QuizResponse, QuizUpdate, RosterEntry,
)
from .service import CourseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{uid}/courses", tags=["Courses"])


def get_course_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> CourseService:
    """Dependency to get a CourseService bound to the caller."""
    return CourseService(db, current_user)


# Courses

@router.get("", response_model=list[CourseResponse])
async def list_courses(uid: str, service: CourseService = Depends(get_course_service)):
    return service.list_courses(uid)


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(uid: str, data: CourseCreate, service: CourseService = Depends(get_course_service)):
    """Create a course with the default grading policy unless one is given."""
    return service.create_course(uid, data)


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    return service.get_course(uid, course_id)


@router.patch("/{course_id}", response_model=CourseResponse)
async def update_course(
    uid: str, course_id: str, data: CourseUpdate, service: CourseService = Depends(get_course_service)
):
    return service.update_course(uid, course_id, data)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    """Delete a course together with its blocks, content and enrollments."""
    service.delete_course(uid, course_id)


@router.put("/{course_id}/grading-policy", response_model=CourseResponse)
async def update_grading_policy(
    uid: str, course_id: str, data: GradingPolicyUpdate, service: CourseService = Depends(get_course_service)
):
    """Replace the grading policy; weights must total 100 at both levels."""
    return service.update_grading_policy(uid, course_id, data)


@router.post("/{course_id}/final-grade", response_model=FinalGradeResponse)
async def calculate_final_grade(
    uid: str, course_id: str, data: FinalGradeRequest, service: CourseService = Depends(get_course_service)
):
    """Weighted final grade for the given per-term component percentages."""
    return service.final_grade(uid, course_id, data)


@router.get("/{course_id}/learning-path", response_model=list[LearningPathItem])
async def get_learning_path(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    return service.learning_path(uid, course_id)


# Blocks

@router.get("/{course_id}/blocks", response_model=list[BlockResponse])
async def list_blocks(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    return service.list_blocks(uid, course_id)


@router.post("/{course_id}/blocks", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_block(
    uid: str, course_id: str, data: BlockCreate, service: CourseService = Depends(get_course_service)
):
    """Create a block with a freshly generated join code."""
    return service.create_block(uid, course_id, data)


@router.get("/{course_id}/blocks/{block_id}", response_model=BlockResponse)
async def get_block(uid: str, course_id: str, block_id: str, service: CourseService = Depends(get_course_service)):
    return service.get_block(uid, course_id, block_id)


@router.patch("/{course_id}/blocks/{block_id}", response_model=BlockResponse)
async def update_block(
    uid: str, course_id: str, block_id: str, data: BlockUpdate,
    service: CourseService = Depends(get_course_service)
):
    return service.update_block(uid, course_id, block_id, data)


@router.delete("/{course_id}/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(uid: str, course_id: str, block_id: str, service: CourseService = Depends(get_course_service)):
    service.delete_block(uid, course_id, block_id)


@router.get("/{course_id}/blocks/{block_id}/students", response_model=list[RosterEntry])
async def get_block_roster(
    uid: str, course_id: str, block_id: str, service: CourseService = Depends(get_course_service)
):
    """Students enrolled in a block."""
    return service.block_roster(uid, course_id, block_id)


# Lessons

@router.get("/{course_id}/lessons", response_model=list[LessonResponse])
async def list_lessons(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    return service.list_lessons(uid, course_id)


@router.post("/{course_id}/lessons", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
async def create_lesson(
    uid: str, course_id: str, data: LessonCreate, service: CourseService = Depends(get_course_service)
):
    return service.create_lesson(uid, course_id, data)


@router.get("/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def get_lesson(uid: str, course_id: str, lesson_id: str, service: CourseService = Depends(get_course_service)):
    return service.get_lesson(uid, course_id, lesson_id)


@router.patch("/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    uid: str, course_id: str, lesson_id: str, data: LessonUpdate,
    service: CourseService = Depends(get_course_service)
):
    return service.update_lesson(uid, course_id, lesson_id, data)


@router.delete("/{course_id}/lessons/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(uid: str, course_id: str, lesson_id: str, service: CourseService = Depends(get_course_service)):
    service.delete_lesson(uid, course_id, lesson_id)


# Assignments

@router.get("/{course_id}/assignments", response_model=list[AssignmentResponse])
async def list_assignments(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    return service.list_assignments(uid, course_id)


@router.post("/{course_id}/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    uid: str, course_id: str, data: AssignmentCreate, service: CourseService = Depends(get_course_service)
):
    """Create an assignment or activity; points possible come from the rubric."""
    return service.create_assignment(uid, course_id, data)


@router.get("/{course_id}/assignments/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    uid: str, course_id: str, assignment_id: str, service: CourseService = Depends(get_course_service)
):
    return service.get_assignment(uid, course_id, assignment_id)


@router.patch("/{course_id}/assignments/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    uid: str, course_id: str, assignment_id: str, data: AssignmentUpdate,
    service: CourseService = Depends(get_course_service)
):
    return service.update_assignment(uid, course_id, assignment_id, data)


@router.delete("/{course_id}/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    uid: str, course_id: str, assignment_id: str, service: CourseService = Depends(get_course_service)
):
    service.delete_assignment(uid, course_id, assignment_id)


# Quizzes

@router.post("/{course_id}/quizzes/generate", response_model=GenerateQuizQuestionsOutput)
async def generate_quiz(
    uid: str,
    course_id: str,
    request: GenerateQuizQuestionsInput,
    service: CourseService = Depends(get_course_service),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Draft multiple-choice questions; nothing is saved until the quiz is created."""
    service.get_course(uid, course_id, "create")
    try:
        return await generate_quiz_questions(ai_client, request)
    except AIServiceError as e:
        logger.error(f"Quiz generation failed for course {course_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Generation Failed: {e}",
        )


@router.get("/{course_id}/quizzes", response_model=list[QuizResponse])
async def list_quizzes(uid: str, course_id: str, service: CourseService = Depends(get_course_service)):
    return service.list_quizzes(uid, course_id)


@router.post("/{course_id}/quizzes", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    uid: str, course_id: str, data: QuizCreate, service: CourseService = Depends(get_course_service)
):
    """Save a quiz under one of the course's grading periods."""
    return service.create_quiz(uid, course_id, data)


@router.get("/{course_id}/quizzes/{quiz_id}", response_model=QuizResponse)
async def get_quiz(uid: str, course_id: str, quiz_id: str, service: CourseService = Depends(get_course_service)):
    return service.get_quiz(uid, course_id, quiz_id)


@router.patch("/{course_id}/quizzes/{quiz_id}", response_model=QuizResponse)
async def update_quiz(
    uid: str, course_id: str, quiz_id: str, data: QuizUpdate,
    service: CourseService = Depends(get_course_service)
):
    return service.update_quiz(uid, course_id, quiz_id, data)


@router.delete("/{course_id}/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(uid: str, course_id: str, quiz_id: str, service: CourseService = Depends(get_course_service)):
    service.delete_quiz(uid, course_id, quiz_id)
