"""Read a document or collection by path, the way live views consume it.

Supported paths::

    users/{uid}
    users/{uid}/courses[/{cid}]
    users/{uid}/courses/{cid}/{blocks|lessons|assignments|quizzes}[/{id}]
    users/{uid}/courses/{cid}/assignments/{aid}/submissions[/{sid}]
    users/{uid}/enrollments[/{eid}]

A snapshot is ``{"data": ..., "isLoading": False, "error": ...}``. Documents
come back as a dict (``None`` when missing), collections as a list.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth.models import UserResponse
from ..courses.schemas import AssignmentResponse, BlockResponse, CourseResponse, LessonResponse, QuizResponse
from ..enrollment.schemas import EnrollmentResponse
from ..enrollment.service import is_enrolled
from ..errors import PermissionDeniedError, deny
from ..grading.schemas import SubmissionResponse
from ..models import Assignment, Block, Course, Enrollment, Lesson, Quiz, Submission, User

COLLECTIONS: dict[str, tuple[type, type[BaseModel]]] = {
    "courses": (Course, CourseResponse),
    "blocks": (Block, BlockResponse),
    "lessons": (Lesson, LessonResponse),
    "assignments": (Assignment, AssignmentResponse),
    "quizzes": (Quiz, QuizResponse),
    "submissions": (Submission, SubmissionResponse),
    "enrollments": (Enrollment, EnrollmentResponse),
}

# Collections allowed directly beneath a parent collection's documents
CHILDREN = {
    "users": {"courses", "enrollments"},
    "courses": {"blocks", "lessons", "assignments", "quizzes"},
    "assignments": {"submissions"},
}

PARENT_COLUMNS = {
    "courses": "course_id",
    "assignments": "assignment_id",
}

COURSE_CONTENT = {"lessons", "assignments", "quizzes"}

ORDER_COLUMNS = {"submissions": "submitted_at"}


class UnknownPathError(ValueError):
    """The path does not name a document or collection this service stores."""
    pass


@dataclass
class ResourcePath:
    path: str
    owner_id: str
    collection: Optional[str] = None
    doc_id: Optional[str] = None
    parents: dict[str, str] = field(default_factory=dict)

    @property
    def is_document(self) -> bool:
        return self.collection is None or self.doc_id is not None

    @property
    def operation(self) -> str:
        return "get" if self.is_document else "list"

    @property
    def course_id(self) -> Optional[str]:
        if self.collection == "courses":
            return self.doc_id
        return self.parents.get("courses")


def parse_path(path: str) -> ResourcePath:
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if len(segments) < 2 or segments[0] != "users":
        raise UnknownPathError(f"Unknown path '{path}'")

    resolved = ResourcePath(path="/".join(segments), owner_id=segments[1])
    parent = "users"
    rest = segments[2:]
    while rest:
        collection = rest[0]
        if collection not in CHILDREN.get(parent, ()):
            raise UnknownPathError(f"Unknown path '{path}'")
        doc_id = rest[1] if len(rest) > 1 else None
        if resolved.collection is not None:
            resolved.parents[resolved.collection] = resolved.doc_id
        resolved.collection = collection
        resolved.doc_id = doc_id
        parent = collection
        rest = rest[2:]
    return resolved


def can_read(db: Session, user: User, resolved: ResourcePath) -> bool:
    """Owners read their whole tree; students read the courses they are enrolled in."""
    if user.id == resolved.owner_id:
        return True
    if not user.is_student or resolved.collection is None:
        return False

    collection = resolved.collection
    if collection == "courses" and resolved.doc_id:
        return is_enrolled(db, user.id, resolved.doc_id)
    if collection in COURSE_CONTENT:
        return is_enrolled(db, user.id, resolved.course_id)
    if collection == "blocks" and resolved.doc_id:
        return (
            db.query(Enrollment.id)
            .filter(Enrollment.student_id == user.id, Enrollment.block_id == resolved.doc_id)
            .first()
            is not None
        )
    if collection == "submissions" and resolved.doc_id:
        return (
            db.query(Submission.id)
            .filter(Submission.id == resolved.doc_id, Submission.student_id == user.id)
            .first()
            is not None
        )
    return False


def _query(db: Session, resolved: ResourcePath):
    model, _ = COLLECTIONS[resolved.collection]
    owner_column = "student_id" if resolved.collection == "enrollments" else "teacher_id"
    query = db.query(model).filter(getattr(model, owner_column) == resolved.owner_id)
    for parent, parent_id in resolved.parents.items():
        query = query.filter(getattr(model, PARENT_COLUMNS[parent]) == parent_id)
    return query


def _serialize(schema: type[BaseModel], obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


def load_data(db: Session, resolved: ResourcePath):
    if resolved.collection is None:
        user = db.query(User).filter(User.id == resolved.owner_id).first()
        return _serialize(UserResponse, user) if user else None

    model, schema = COLLECTIONS[resolved.collection]
    query = _query(db, resolved)
    if resolved.doc_id is not None:
        obj = query.filter(model.id == resolved.doc_id).first()
        return _serialize(schema, obj) if obj else None
    order_column = getattr(model, ORDER_COLUMNS.get(resolved.collection, "created_at"))
    return [_serialize(schema, obj) for obj in query.order_by(order_column.asc()).all()]


def snapshot(data=None, error: Optional[dict] = None) -> dict:
    return {"data": data, "isLoading": False, "error": error}


def read_snapshot(db: Session, user: User, path: str) -> dict:
    """Snapshot of ``path`` as seen by ``user``.

    Raises UnknownPathError for paths outside the store and
    PermissionDeniedError (already reported on the event bus) when the
    user may not read it.
    """
    resolved = parse_path(path)
    if not can_read(db, user, resolved):
        raise deny(resolved.operation, resolved.path)
    return snapshot(load_data(db, resolved))


def error_snapshot(error: PermissionDeniedError) -> dict:
    return snapshot(None, error.to_dict())
