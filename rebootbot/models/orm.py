"""SQLAlchemy ORM models.

DAOs convert these to Pydantic domain models before returning to services.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text

from rebootbot.database import Base


class PlayerModel(Base):
    """Local player record and its dashboard athlete mapping."""

    __tablename__ = "players"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    remote_athlete_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class ActivityLogModel(Base):
    """One automation run as seen by operators."""

    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    player_id = Column(String, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_activity_log_action_created", "action", "created_at"),)
