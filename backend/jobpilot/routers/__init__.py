from .profile import router as profile_router
from .tailor import router as tailor_router

__all__ = ["profile_router", "tailor_router"]
