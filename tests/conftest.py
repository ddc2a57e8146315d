"""Shared fixtures."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from playbook_share.core.models import (
    Playbook, Play, Player, RouteSegment, RouteType, PlayTag, Point,
    GridPosition, GridConfig
)


def make_player(player_id: str, role: str, x: float, y: float, **kwargs) -> Player:
    """Player on half-yard snapped coordinates."""
    return Player(
        id=player_id,
        role=role,
        label=kwargs.pop("label", role),
        color=kwargs.pop("color", "#3b82f6"),
        position=Point(x=x, y=y),
        **kwargs
    )


def make_playbook() -> Playbook:
    """Two plays, one on the grid, with motion, tags, presets and every route type."""
    wr = make_player(
        "p-wr", "WR-L", 50.0, 500.0,
        motion=Point(x=112.5, y=500.0),
        routes=[
            RouteSegment(
                id="r-primary", type=RouteType.PRIMARY,
                points=[Point(x=112.5, y=500.0), Point(x=112.5, y=375.0), Point(x=200.0, y=300.0)],
                preset="post",
            ),
            RouteSegment(
                id="r-option", type=RouteType.OPTION,
                points=[Point(x=112.5, y=375.0), Point(x=25.0, y=300.0)],
            ),
        ],
    )
    qb = make_player("p-qb", "QB", 312.5, 562.5)
    center = make_player(
        "p-c", "C", 312.5, 512.5,
        routes=[
            RouteSegment(id="r-check", type=RouteType.CHECK,
                         points=[Point(x=312.5, y=512.5), Point(x=350.0, y=450.0)]),
            RouteSegment(id="r-endzone", type=RouteType.ENDZONE,
                         points=[Point(x=350.0, y=450.0), Point(x=400.0, y=0.0)]),
        ],
    )

    flood = Play(
        id="play-flood",
        name="Trips Flood",
        players=[wr, qb, center],
        tags=[PlayTag(id="t-1", text="3rd & long", color="#f59e0b")],
        grid_position=GridPosition(row=1, column=2),
        ball_position=Point(x=312.5, y=500.0),
    )
    quick = Play(
        id="play-quick",
        name="Quick Slants",
        players=[make_player("p-qb2", "QB", 312.5, 562.5)],
    )

    return Playbook(
        id="pb-1",
        name="Spring League",
        plays=[flood, quick],
        grid_config=GridConfig(column_names=["Open", "Red", "Goal", "2pt", "Trick"]),
        created_at=1_700_000_000_000,
        updated_at=1_700_000_500_000,
    )


@pytest.fixture
def playbook() -> Playbook:
    return make_playbook()
