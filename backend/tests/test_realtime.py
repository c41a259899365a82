"""Tests for path snapshots, the change hub and live watches."""
import asyncio

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError

from ilearn.models import Course, Lesson
from ilearn.grading.policy import default_grading_policy
from ilearn.realtime import ChangeHub, UnknownPathError, hub, parse_path, paths_overlap
import ilearn.realtime.router as realtime_router

from conftest import auth_headers


def new_course(teacher_id, course_id="course-live", title="Live Updates 101"):
    return Course(
        id=course_id,
        teacher_id=teacher_id,
        title=title,
        course_code="LIVE1",
        grading_policy=default_grading_policy(),
    )


class TestPaths:
    def test_overlap(self):
        assert paths_overlap("users/t/courses", "users/t/courses/c1")
        assert paths_overlap("users/t/courses/c1/lessons", "users/t/courses/c1")
        assert paths_overlap("users/t/courses/c1", "users/t/courses/c1")
        assert not paths_overlap("users/t/courses/c1", "users/t/courses/c10")
        assert not paths_overlap("users/t/courses", "users/x/courses/c1")

    def test_parse_collection(self):
        resolved = parse_path("users/t/courses/c1/lessons")
        assert resolved.owner_id == "t"
        assert resolved.collection == "lessons"
        assert resolved.doc_id is None
        assert resolved.parents == {"courses": "c1"}
        assert resolved.operation == "list"

    def test_parse_document(self):
        resolved = parse_path("/users/t/courses/c1/assignments/a1/submissions/s1/")
        assert resolved.collection == "submissions"
        assert resolved.doc_id == "s1"
        assert resolved.parents == {"courses": "c1", "assignments": "a1"}
        assert resolved.operation == "get"

    def test_parse_user_document(self):
        resolved = parse_path("users/t")
        assert resolved.collection is None
        assert resolved.is_document

    @pytest.mark.parametrize(
        "path", ["", "courses/c1", "users", "users/t/lessons", "users/t/courses/c1/students", "users/t/enrollments/e/x"]
    )
    def test_unknown_paths(self, path):
        with pytest.raises(UnknownPathError):
            parse_path(path)


class TestChangeHub:
    @pytest.mark.asyncio
    async def test_publish_wakes_matching_watchers(self):
        change_hub = ChangeHub()
        watched = change_hub.subscribe("users/t/courses")
        unrelated = change_hub.subscribe("users/x/courses")

        assert change_hub.publish(["users/t/courses/c1"]) == 1
        changed = await asyncio.wait_for(watched.queue.get(), timeout=1)

        assert changed == ["users/t/courses/c1"]
        assert unrelated.queue.empty()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        change_hub = ChangeHub()
        subscription = change_hub.subscribe("users/t")
        change_hub.unsubscribe(subscription)
        assert change_hub.subscriber_count() == 0
        assert change_hub.publish(["users/t"]) == 0

    @pytest.mark.asyncio
    async def test_commit_publishes_resource_paths(self, db_session, teacher):
        subscription = hub.subscribe(f"users/{teacher.id}/courses")
        try:
            db_session.add(new_course(teacher.id))
            db_session.commit()
            changed = await asyncio.wait_for(subscription.queue.get(), timeout=1)
        finally:
            hub.unsubscribe(subscription)
        assert f"users/{teacher.id}/courses/course-live" in changed

    @pytest.mark.asyncio
    async def test_rollback_publishes_nothing(self, db_session, teacher):
        subscription = hub.subscribe(f"users/{teacher.id}/courses")
        try:
            db_session.add(new_course(teacher.id))
            db_session.flush()
            db_session.rollback()
            await asyncio.sleep(0.05)
            assert subscription.queue.empty()
        finally:
            hub.unsubscribe(subscription)


class TestSnapshotEndpoint:
    def test_owner_reads_collection(self, client, teacher, teacher_headers, sample_course):
        response = client.get(f"/snapshot/users/{teacher.id}/courses", headers=teacher_headers)
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["isLoading"] is False
        assert body["error"] is None
        assert [course["id"] for course in body["data"]] == [sample_course.id]

    def test_missing_document_is_null(self, client, teacher, teacher_headers):
        response = client.get(f"/snapshot/users/{teacher.id}/courses/nope", headers=teacher_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] is None

    def test_enrolled_student_reads_course_content(
        self, client, teacher, student_headers, sample_course, sample_lesson, enrollment
    ):
        course_path = f"users/{teacher.id}/courses/{sample_course.id}"
        response = client.get(f"/snapshot/{course_path}", headers=student_headers)
        assert response.json()["data"]["title"] == sample_course.title

        response = client.get(f"/snapshot/{course_path}/lessons", headers=student_headers)
        assert [lesson["id"] for lesson in response.json()["data"]] == [sample_lesson.id]

    def test_enrolled_student_reads_block(self, client, teacher, student_headers, sample_course, sample_block, enrollment):
        path = f"users/{teacher.id}/courses/{sample_course.id}/blocks/{sample_block.id}"
        response = client.get(f"/snapshot/{path}", headers=student_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["student_count"] == 1

    def test_unenrolled_student_denied(self, client, teacher, student_headers, sample_course):
        path = f"users/{teacher.id}/courses/{sample_course.id}/lessons"
        response = client.get(f"/snapshot/{path}", headers=student_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {
            "detail": f"Missing or insufficient permissions to list '{path}'",
            "operation": "list",
            "path": path,
        }

    def test_student_cannot_list_blocks(self, client, teacher, student_headers, sample_course, enrollment):
        path = f"users/{teacher.id}/courses/{sample_course.id}/blocks"
        response = client.get(f"/snapshot/{path}", headers=student_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_teacher_denied(self, client, db_session, teacher, other_teacher):
        response = client.get(f"/snapshot/users/{teacher.id}", headers=auth_headers(db_session, other_teacher))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["operation"] == "get"

    def test_unknown_path(self, client, teacher, teacher_headers):
        response = client.get(f"/snapshot/users/{teacher.id}/widgets", headers=teacher_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


def watch_url(path, headers):
    token = headers["Authorization"].split(" ", 1)[1]
    return f"/ws/watch?path={path}&token={token}"


class TestWatch:
    def test_initial_snapshot_then_update(self, client, db_session, teacher, teacher_headers):
        path = f"users/{teacher.id}/courses"
        with client.websocket_connect(watch_url(path, teacher_headers)) as websocket:
            first = websocket.receive_json()
            assert first == {"data": [], "isLoading": False, "error": None}

            db_session.add(new_course(teacher.id))
            db_session.commit()

            update = websocket.receive_json()
            assert [course["id"] for course in update["data"]] == ["course-live"]

    def test_child_change_refreshes_collection(self, client, db_session, teacher, teacher_headers, sample_course):
        path = f"users/{teacher.id}/courses/{sample_course.id}/lessons"
        course_id = sample_course.id
        with client.websocket_connect(watch_url(path, teacher_headers)) as websocket:
            assert websocket.receive_json()["data"] == []

            db_session.add(Lesson(
                id="lesson-live",
                course_id=course_id,
                teacher_id=teacher.id,
                title="Streaming",
                content="Lessons appear as soon as they are saved.",
            ))
            db_session.commit()

            update = websocket.receive_json()
            assert [lesson["id"] for lesson in update["data"]] == ["lesson-live"]

    def test_denied_watch_reports_error(self, client, teacher, student_headers, sample_course):
        path = f"users/{teacher.id}/courses/{sample_course.id}"
        with client.websocket_connect(watch_url(path, student_headers)) as websocket:
            message = websocket.receive_json()
        assert message["data"] is None
        assert message["error"]["operation"] == "get"
        assert message["error"]["path"] == path

    def test_bad_token(self, client, teacher):
        path = f"users/{teacher.id}/courses"
        with client.websocket_connect(f"/ws/watch?path={path}&token=garbage") as websocket:
            message = websocket.receive_json()
        assert message["error"] == {"detail": "Could not validate credentials"}

    def test_unknown_path(self, client, teacher, teacher_headers):
        with client.websocket_connect(watch_url("somewhere/else", teacher_headers)) as websocket:
            message = websocket.receive_json()
        assert "Unknown path" in message["error"]["detail"]

    def test_database_failure_ends_watch_with_error(self, client, db_session, teacher, teacher_headers, monkeypatch):
        path = f"users/{teacher.id}/courses"
        real_read = realtime_router.read_snapshot
        calls = []

        def failing_after_first(db, user, watched):
            calls.append(watched)
            if len(calls) > 1:
                raise OperationalError("SELECT", {}, Exception("database is gone"))
            return real_read(db, user, watched)

        monkeypatch.setattr(realtime_router, "read_snapshot", failing_after_first)

        with client.websocket_connect(watch_url(path, teacher_headers)) as websocket:
            assert websocket.receive_json()["data"] == []

            db_session.add(new_course(teacher.id))
            db_session.commit()

            message = websocket.receive_json()
        assert message["data"] is None
        assert message["error"] == {"detail": "Could not load data"}
