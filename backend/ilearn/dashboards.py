"""Role dashboards and the post-login landing redirect."""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from .auth import get_optional_user, role_guard
from .database import get_db
from .models import Block, Course, Enrollment, Submission, User
from .navigation import LOGIN_PATH, dashboard_for

router = APIRouter(tags=["Dashboards"])


@router.get("/landing")
async def landing(user: Optional[User] = Depends(get_optional_user)):
    """Send the visitor to their dashboard, or to the login page."""
    target = dashboard_for(user.role) if user else LOGIN_PATH
    return RedirectResponse(url=target, status_code=307)


@router.get("/teacher/dashboard")
async def teacher_dashboard(user: User = Depends(role_guard), db: Session = Depends(get_db)):
    return {
        "role": user.role.value,
        "display_name": user.display_name,
        "courses": db.query(Course).filter(Course.teacher_id == user.id).count(),
        "blocks": db.query(Block).filter(Block.teacher_id == user.id).count(),
        "students": (
            db.query(func.count(distinct(Enrollment.student_id)))
            .filter(Enrollment.teacher_id == user.id)
            .scalar()
        ),
        "ungraded_submissions": (
            db.query(Submission)
            .filter(Submission.teacher_id == user.id, Submission.grade.is_(None))
            .count()
        ),
    }


@router.get("/student/dashboard")
async def student_dashboard(user: User = Depends(role_guard), db: Session = Depends(get_db)):
    return {
        "role": user.role.value,
        "display_name": user.display_name,
        "enrollments": db.query(Enrollment).filter(Enrollment.student_id == user.id).count(),
        "submissions": db.query(Submission).filter(Submission.student_id == user.id).count(),
    }
