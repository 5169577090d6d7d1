"""Player data access operations."""

import uuid
from datetime import datetime

from sqlalchemy import select

from rebootbot.dao.base import BaseDAO
from rebootbot.models.domain import Player
from rebootbot.models.orm import PlayerModel


def _to_domain(model: PlayerModel) -> Player:
    return Player(
        id=model.id,
        name=model.name,
        email=model.email,
        remote_athlete_id=model.remote_athlete_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class PlayerDAO(BaseDAO[Player]):
    """Data access object for local players.

    Implements the pipeline's player store: lookup by id and persistence of
    the dashboard athlete id once resolved.
    """

    async def create(
        self,
        name: str,
        email: str | None = None,
        *,
        player_id: str | None = None,
        remote_athlete_id: str | None = None,
    ) -> Player:
        """Create a new player.

        Args:
            name: Display name, as it appears on the dashboard.
            email: Optional contact email.
            player_id: Explicit id; a UUID is generated when omitted.
            remote_athlete_id: Dashboard athlete id, if already known.

        Returns:
            Created Player domain model.
        """
        now = datetime.utcnow()
        async with self._db.session() as session:
            model = PlayerModel(
                id=player_id or str(uuid.uuid4()),
                name=name,
                email=email,
                remote_athlete_id=remote_athlete_id,
                created_at=now,
                updated_at=now,
            )
            session.add(model)
            await session.flush()
            return _to_domain(model)

    async def get(self, player_id: str) -> Player | None:
        async with self._db.session() as session:
            result = await session.execute(select(PlayerModel).where(PlayerModel.id == player_id))
            model = result.scalar_one_or_none()
            return _to_domain(model) if model else None

    async def get_by_remote_id(self, remote_athlete_id: str) -> Player | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(PlayerModel).where(PlayerModel.remote_athlete_id == remote_athlete_id)
            )
            model = result.scalars().first()
            return _to_domain(model) if model else None

    async def set_remote_athlete_id(self, player_id: str, remote_athlete_id: str) -> bool:
        """Record the dashboard athlete id for a player.

        Returns:
            True if the player exists and was updated, False otherwise.
        """
        async with self._db.session() as session:
            result = await session.execute(select(PlayerModel).where(PlayerModel.id == player_id))
            model = result.scalar_one_or_none()
            if model is None:
                return False
            model.remote_athlete_id = remote_athlete_id
            model.updated_at = datetime.utcnow()
            return True
