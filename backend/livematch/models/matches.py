"""
backend/livematch/models/matches.py

Purpose:
    Immutable value types for matches, odds, their joined view, odds update
    commands and the store metrics snapshot. Wire names follow the feed
    payloads (``matchID``, ``teamAOdds``...), attribute names stay pythonic.

Dependencies:
    - pydantic
    - livematch.utils
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from livematch.utils import utcnow

_VALUE_CONFIG = ConfigDict(frozen=True, populate_by_name=True)


class Match(BaseModel):
    model_config = _VALUE_CONFIG

    id: int = Field(alias="matchID")
    team_a: str = Field(alias="teamA")
    team_b: str = Field(alias="teamB")
    start_time: datetime = Field(alias="startTime")


class Odds(BaseModel):
    """Current odds for one match. ``id`` equals the owning match id."""
    model_config = _VALUE_CONFIG

    id: int = Field(alias="matchID")
    team_a_odds: float = Field(alias="teamAOdds")
    team_b_odds: float = Field(alias="teamBOdds")


class MatchWithOdds(BaseModel):
    model_config = ConfigDict(frozen=True)

    match: Match
    odds: Odds

    @computed_field
    @property
    def id(self) -> int:
        return self.match.id


class OddsUpdate(BaseModel):
    """Command replacing both odds of one match."""
    model_config = _VALUE_CONFIG

    match_id: int = Field(alias="matchID")
    team_a_odds: float = Field(alias="teamAOdds")
    team_b_odds: float = Field(alias="teamBOdds")


class UpdateMetrics(BaseModel):
    model_config = _VALUE_CONFIG

    received_updates: int = Field(default=0, alias="receivedUpdates")
    ui_updates: int = Field(default=0, alias="uiUpdates")
    average_latency: float = Field(default=0.0, alias="averageLatency")  # seconds
    last_update_time: datetime = Field(default_factory=utcnow, alias="lastUpdateTime")


class UIUpdateType(str, Enum):
    initial_load = "Initial Load"
    batch_update = "Batch Update"
    single_update = "Single Update"
    refresh = "Refresh"


class MatchesResponse(BaseModel):
    matches: list[Match] = Field(default_factory=list)


class OddsResponse(BaseModel):
    odds: list[Odds] = Field(default_factory=list)
