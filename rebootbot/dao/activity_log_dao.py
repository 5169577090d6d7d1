"""Activity log data access operations."""

from datetime import datetime
from typing import Any

from sqlalchemy import select

from rebootbot.dao.base import BaseDAO
from rebootbot.models.domain import ActivityLogEntry
from rebootbot.models.orm import ActivityLogModel


def _to_domain(model: ActivityLogModel) -> ActivityLogEntry:
    return ActivityLogEntry(
        id=model.id,
        action=model.action,
        description=model.description,
        player_id=model.player_id,
        metadata=model.metadata_json,
        created_at=model.created_at,
    )


class ActivityLogDAO(BaseDAO[ActivityLogEntry]):
    """Data access object for the automation activity log.

    All methods return Pydantic ActivityLogEntry models, never SQLAlchemy objects.
    """

    async def create(
        self,
        action: str,
        description: str,
        player_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityLogEntry:
        """Append one activity row.

        Args:
            action: Action name, e.g. ``browser_full_pipeline``.
            description: Outcome message.
            player_id: Local player the run acted for.
            metadata: Diagnostic payload (success flag, replay URL, errors).

        Returns:
            Created ActivityLogEntry domain model.
        """
        async with self._db.session() as session:
            model = ActivityLogModel(
                action=action,
                description=description,
                player_id=player_id,
                metadata_json=metadata,
                created_at=datetime.utcnow(),
            )
            session.add(model)
            await session.flush()
            return _to_domain(model)

    async def get_recent(self, limit: int = 50, action: str | None = None) -> list[ActivityLogEntry]:
        """Most recent entries first, optionally filtered by action."""
        async with self._db.session() as session:
            query = select(ActivityLogModel)
            if action is not None:
                query = query.where(ActivityLogModel.action == action)
            query = query.order_by(
                ActivityLogModel.created_at.desc(), ActivityLogModel.id.desc()
            ).limit(limit)

            result = await session.execute(query)
            return [_to_domain(model) for model in result.scalars().all()]
