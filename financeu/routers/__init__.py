"""API routers."""

from financeu.routers.admin import router as admin_router
from financeu.routers.auth import router as auth_router
from financeu.routers.feedback import router as feedback_router
from financeu.routers.lessons import router as lessons_router
from financeu.routers.users import router as users_router

__all__ = ["auth_router", "users_router", "lessons_router", "feedback_router", "admin_router"]
