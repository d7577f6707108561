"""Game result service — append one result, list all results grouped by game."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, ValidationError
from repositories.game_result_repository import GameResultRepository
from schemas.models.game_result import GameResultDoc
from shared.datetime_utils import utc_now
from shared.logging import get_logger
from shared.validators import result_date_sort_key

log = get_logger(__name__)


class GameResultService:
    def __init__(
        self,
        results: GameResultRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._results = results
        self._clock = clock

    async def add_result(
        self, game_id: str, date: str, result_number: str
    ) -> GameResultDoc:
        date_key = result_date_sort_key(date)
        if date_key is None:
            raise ValidationError("Date must be in DD-MM-YYYY format", field="date")

        now = self._clock()
        doc = GameResultDoc(
            game_id=game_id,
            date=date,
            date_key=date_key,
            result_number=result_number,
            created_at=now,
            updated_at=now,
        )
        try:
            doc.id = await self._results.insert(doc)
        except DuplicateKeyError as e:
            raise ConflictError("Result already exists for this game & date") from e

        log.info("game_result_added", game_id=game_id, date=date)
        return doc

    async def list_grouped(self) -> list[dict]:
        """One entry per game: ``{"game_id": ..., "results": [...]}``."""
        return await self._results.list_grouped()
