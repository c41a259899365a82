"""Test configuration and fixtures."""

import os

# Point the app at SQLite before anything imports the engine
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ilearn.ai import AIClient, get_ai_client
from ilearn.auth.service import AuthService
from ilearn.database import Base, get_db, get_session_factory
from ilearn.errors import AIServiceError
from ilearn.grading.policy import default_grading_policy
from ilearn.models import Assignment, Block, Course, CourseType, Enrollment, Lesson, User, UserRole


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "TestPass123!"

SAMPLE_RUBRIC = [
    {
        "name": "Thesis",
        "description": "Clear thesis statement",
        "levels": [
            {"label": "Excellent", "description": "", "points": 10},
            {"label": "Fair", "description": "", "points": 5},
            {"label": "Missing", "description": "", "points": 0},
        ],
    },
    {
        "name": "Evidence",
        "description": "Supporting evidence",
        "levels": [
            {"label": "Strong", "description": "", "points": 15},
            {"label": "Weak", "description": "", "points": 5},
        ],
    },
]


class FakeAIClient(AIClient):
    """AIClient whose completions come from a queue instead of the network."""

    def __init__(self):
        super().__init__(model_name="test-model", api_key="test-key")
        self.replies = []
        self.prompts = []
        self.error = None

    async def complete_json(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts.append((system_prompt, user_prompt))
        if self.error is not None:
            raise AIServiceError(self.error)
        return self.replies.pop(0)


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create test database session."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def client(session_factory, fake_ai):
    from ilearn.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_ai_client] = lambda: fake_ai

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db_session, email: str, role: UserRole, display_name: str = None) -> User:
    user = User(email=email, display_name=display_name, role=role, is_active=True)
    user.set_password(TEST_PASSWORD)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers(db_session, user: User) -> dict:
    token = AuthService(db_session).create_access_token(
        data={"sub": user.email, "user_id": user.id, "role": user.role.value},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def teacher(db_session):
    return make_user(db_session, "teacher@example.com", UserRole.teacher, "Ada Teacher")


@pytest.fixture
def other_teacher(db_session):
    return make_user(db_session, "other.teacher@example.com", UserRole.teacher, "Other Teacher")


@pytest.fixture
def student(db_session):
    return make_user(db_session, "student@example.com", UserRole.student, "Sam Student")


@pytest.fixture
def other_student(db_session):
    return make_user(db_session, "other.student@example.com", UserRole.student, "Olive Student")


@pytest.fixture
def teacher_headers(db_session, teacher):
    return auth_headers(db_session, teacher)


@pytest.fixture
def student_headers(db_session, student):
    return auth_headers(db_session, student)


@pytest.fixture
def sample_course(db_session, teacher):
    """Create a sample course for testing."""
    course = Course(
        teacher_id=teacher.id,
        title="Introduction to Programming",
        description="Basics of programming with Python",
        course_code="CS101",
        units=3,
        course_type=CourseType.lecture,
        syllabus_link="https://example.com/syllabus.pdf",
        grading_policy=default_grading_policy(),
    )
    db_session.add(course)
    db_session.commit()
    db_session.refresh(course)
    return course


@pytest.fixture
def sample_block(db_session, sample_course):
    """Create a sample block for testing."""
    block = Block(
        course_id=sample_course.id,
        teacher_id=sample_course.teacher_id,
        name="Block A",
        schedule="MWF 9:00-10:00",
        code="ABC234",
    )
    db_session.add(block)
    db_session.commit()
    db_session.refresh(block)
    return block


@pytest.fixture
def sample_lesson(db_session, sample_course):
    lesson = Lesson(
        course_id=sample_course.id,
        teacher_id=sample_course.teacher_id,
        title="Variables",
        content="Variables name values so they can be reused.",
        learning_outcome="Students can declare variables.",
        objectives="Understand assignment and naming.",
    )
    db_session.add(lesson)
    db_session.commit()
    db_session.refresh(lesson)
    return lesson


@pytest.fixture
def sample_assignment(db_session, sample_course):
    """Create a sample assignment for testing."""
    assignment = Assignment(
        course_id=sample_course.id,
        teacher_id=sample_course.teacher_id,
        title="Essay on Algorithms",
        description="Write about your favourite algorithm",
        rubric=SAMPLE_RUBRIC,
        points_possible=25,
    )
    db_session.add(assignment)
    db_session.commit()
    db_session.refresh(assignment)
    return assignment


@pytest.fixture
def enrollment(db_session, student, sample_block):
    enrollment = Enrollment(
        student_id=student.id,
        block_id=sample_block.id,
        course_id=sample_block.course_id,
        teacher_id=sample_block.teacher_id,
    )
    db_session.add(enrollment)
    db_session.commit()
    db_session.refresh(enrollment)
    return enrollment


@pytest.fixture
def second_block_enrollment(db_session, student, sample_course, enrollment):
    """The same student enrolled in a second block of the sample course."""
    block = Block(
        course_id=sample_course.id,
        teacher_id=sample_course.teacher_id,
        name="Block B",
        schedule="TTh 13:00-14:30",
        code="XYZ789",
    )
    db_session.add(block)
    db_session.commit()
    second = Enrollment(
        student_id=student.id,
        block_id=block.id,
        course_id=sample_course.id,
        teacher_id=sample_course.teacher_id,
    )
    db_session.add(second)
    db_session.commit()
    db_session.refresh(second)
    return second
