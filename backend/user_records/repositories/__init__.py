"""Repository implementations."""
from .users import UserRepository, UserStore

__all__ = ["UserRepository", "UserStore"]
