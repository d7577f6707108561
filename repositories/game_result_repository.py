"""Game result repository — the `game_results` collection."""

from __future__ import annotations

from typing import Any

from bson import ObjectId
from pymongo import ASCENDING

from schemas.models.game_result import GameResultDoc

COLLECTION_NAME = "game_results"

# Oldest first inside each game, games ordered by id
GROUPED_RESULTS_PIPELINE: list[dict] = [
    {"$sort": {"game_id": 1, "date_key": 1}},
    {
        "$group": {
            "_id": "$game_id",
            "results": {
                "$push": {
                    "_id": "$_id",
                    "game_id": "$game_id",
                    "date": "$date",
                    "result_number": "$result_number",
                }
            },
        }
    },
    {"$project": {"_id": 0, "game_id": "$_id", "results": 1}},
    {"$sort": {"game_id": 1}},
]


class GameResultRepository:
    def __init__(self, db: Any) -> None:
        self._col = db[COLLECTION_NAME]

    async def ensure_indexes(self) -> None:
        await self._col.create_index(
            [("game_id", ASCENDING), ("date", ASCENDING)], unique=True
        )

    async def insert(self, result: GameResultDoc) -> ObjectId:
        """Insert *result*; raises DuplicateKeyError for an existing (game_id, date)."""
        inserted = await self._col.insert_one(result.to_mongo())
        return inserted.inserted_id

    async def list_grouped(self) -> list[dict]:
        cursor = await self._col.aggregate(GROUPED_RESULTS_PIPELINE)
        return await cursor.to_list(length=None)
