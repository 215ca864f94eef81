"""
karmabot.api.routes.public — Read-only public endpoints
========================================================
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from karmabot.api.deps import get_ledger
from karmabot.services.ledger import Ledger
from karmabot.services.stats_service import get_history, get_leaderboard, get_stats

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class LeaderboardRow(BaseModel):
    rank: int
    user_id: str
    karma: int


class LeaderboardResponse(BaseModel):
    group_id: str
    total: int
    entries: list[LeaderboardRow]


class StatsResponse(BaseModel):
    user_id: str
    karma: int
    up: int
    down: int


class HistoryPoint(BaseModel):
    timestamp: datetime
    karma: int


class HistoryResponse(BaseModel):
    user_id: str
    points: list[HistoryPoint]


# ---------------------------------------------------------------------------
# GET /leaderboard/{group_id}
# ---------------------------------------------------------------------------
@router.get("/leaderboard/{group_id}", response_model=LeaderboardResponse)
def leaderboard(
    group_id: str,
    limit: int = Query(25, ge=1, le=100),
    ledger: Ledger = Depends(get_ledger),
):
    """Guild members ranked by karma.  404 when nobody has karma yet."""
    board = get_leaderboard(ledger, group_id)
    if board is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND, "There are no members with karma in this group."
        )
    return LeaderboardResponse(
        group_id=group_id,
        total=len(board.entries),
        entries=[
            LeaderboardRow(rank=e.rank, user_id=e.user_id, karma=e.karma)
            for e in board.top(limit)
        ],
    )


# ---------------------------------------------------------------------------
# GET /users/{user_id}/stats
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/stats", response_model=StatsResponse)
def user_stats(user_id: str, ledger: Ledger = Depends(get_ledger)):
    stats = get_stats(ledger, user_id)
    return StatsResponse(user_id=user_id, karma=stats.karma, up=stats.up, down=stats.down)


# ---------------------------------------------------------------------------
# GET /users/{user_id}/history
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/history", response_model=HistoryResponse)
def user_history(user_id: str, ledger: Ledger = Depends(get_ledger)):
    return HistoryResponse(
        user_id=user_id,
        points=[
            HistoryPoint(timestamp=datetime.fromtimestamp(m.timestamp, UTC), karma=m.karma)
            for m in get_history(ledger, user_id)
        ],
    )
