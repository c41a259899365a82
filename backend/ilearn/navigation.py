"""Role-based redirects for the teacher and student areas."""

import logging
from typing import Optional

from .models import User, UserRole

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
ROLE_AREAS = {
    UserRole.teacher: "/teacher",
    UserRole.student: "/student",
}


def dashboard_for(role: UserRole) -> str:
    return f"/{role.value}/dashboard"


def resolve_redirect(pathname: str, user: Optional[User]) -> Optional[str]:
    """Where to send the user viewing ``pathname``, or None to stay."""
    on_login = pathname == LOGIN_PATH
    if user is None:
        return None if on_login else LOGIN_PATH

    if on_login:
        return dashboard_for(user.role)

    for role, prefix in ROLE_AREAS.items():
        in_area = pathname == prefix or pathname.startswith(prefix + "/")
        if in_area and user.role != role:
            logger.info(f"Redirecting {user.role.value} away from {pathname}")
            return dashboard_for(user.role)
    return None
