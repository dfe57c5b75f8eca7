"""Account and authentication package."""
from .models import User, RefreshToken
from .service import AuthService, get_current_user, get_current_active_user, require_role
from .router import router as auth_router

__all__ = [
    'User',
    'RefreshToken',
    'AuthService',
    'get_current_user',
    'get_current_active_user',
    'require_role',
    'auth_router'
]
