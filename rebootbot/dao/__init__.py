"""Data Access Objects package."""

from .activity_log_dao import ActivityLogDAO
from .base import BaseDAO
from .player_dao import PlayerDAO

__all__ = [
    "ActivityLogDAO",
    "BaseDAO",
    "PlayerDAO",
]
