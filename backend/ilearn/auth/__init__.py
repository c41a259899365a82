"""Authentication package for the application."""
from .service import AuthService, get_current_user, get_current_active_user, get_optional_user, role_guard
from .router import router as auth_router

__all__ = [
    'AuthService',
    'get_current_user',
    'get_current_active_user',
    'get_optional_user',
    'role_guard',
    'auth_router'
]
