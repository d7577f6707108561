"""
Game result endpoints.

POST /api/game/game-results/add — append one result (authenticated)
GET  /api/game/game-results     — every result, grouped by game
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from dependencies import get_current_account, get_game_result_service
from schemas.dto.requests.game_result import AddGameResultRequest
from schemas.dto.responses.common import ErrorResponse
from schemas.dto.responses.game_result import (
    AddGameResultResponse,
    GameResultGroup,
    GameResultItem,
    GameResultsListResponse,
)
from schemas.models.account import AccountDoc
from services.game_result_service import GameResultService

router = APIRouter(
    prefix="/api/game",
    tags=["game-results"],
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


@router.post(
    "/game-results/add",
    response_model=AddGameResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_game_result(
    body: AddGameResultRequest,
    account: AccountDoc = Depends(get_current_account),
    service: GameResultService = Depends(get_game_result_service),
) -> AddGameResultResponse:
    doc = await service.add_result(body.game_id, body.date, body.result_number)
    return AddGameResultResponse(
        success=True,
        message="Game result added successfully",
        data=GameResultItem(
            id=str(doc.id),
            game_id=doc.game_id,
            date=doc.date,
            result_number=doc.result_number,
        ),
    )


@router.get("/game-results", response_model=GameResultsListResponse)
async def list_game_results(
    service: GameResultService = Depends(get_game_result_service),
) -> GameResultsListResponse:
    groups = await service.list_grouped()
    data = [
        GameResultGroup(
            game_id=group["game_id"],
            results=[
                GameResultItem(
                    id=str(item["_id"]),
                    game_id=item["game_id"],
                    date=item["date"],
                    result_number=item["result_number"],
                )
                for item in group["results"]
            ],
        )
        for group in groups
    ]
    return GameResultsListResponse(success=True, total_games=len(data), data=data)
