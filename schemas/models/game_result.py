"""
Game result document model.

Maps to the `game_results` MongoDB collection. (game_id, date) is unique.

date is kept exactly as submitted (DD-MM-YYYY); date_key is the derived
YYYY-MM-DD form used only to sort results chronologically.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import MongoBaseModel


class GameResultDoc(MongoBaseModel):
    """Document model for the `game_results` collection."""

    game_id: str
    date: str
    date_key: str
    result_number: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
