"""Repository layer for database operations"""

from .base import BaseRepository
from .estate import EstateConflictError, EstateRepository
from .estate_event import EstateEventRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "EstateRepository",
    "EstateConflictError",
    "EstateEventRepository",
    "UserRepository",
]
