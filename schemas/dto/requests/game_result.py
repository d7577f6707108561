"""
Request DTOs for game result endpoints.

AddGameResultRequest — POST /api/game/game-results/add
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shared.validators import validate_result_date


class AddGameResultRequest(BaseModel):
    """Request body for POST /api/game/game-results/add.

    ``date`` must be ``DD-MM-YYYY`` and is stored exactly as given.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    game_id: str = Field(min_length=1, validation_alias=AliasChoices("game_id", "gameId"))
    date: str
    result_number: str = Field(
        min_length=1, validation_alias=AliasChoices("result_number", "resultNumber")
    )

    @field_validator("date")
    @classmethod
    def check_date_format(cls, value: str) -> str:
        if not validate_result_date(value):
            raise ValueError("Date must be in DD-MM-YYYY format")
        return value
