"""
Response DTOs for game result endpoints.

GameResultItem          — one stored result
AddGameResultResponse   — POST /api/game/game-results/add  (201)
GameResultGroup         — all results of one game, oldest first
GameResultsListResponse — GET /api/game/game-results  (200)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GameResultItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    game_id: str
    date: str  # DD-MM-YYYY, as submitted
    result_number: str


class AddGameResultResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    data: GameResultItem


class GameResultGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_id: str
    results: list[GameResultItem]


class GameResultsListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    total_games: int
    data: list[GameResultGroup]
