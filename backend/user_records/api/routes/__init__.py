"""Route modules for the User Records API."""
from . import users

__all__ = ["users"]
