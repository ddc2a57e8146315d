"""Editing operations consumed by the diagram editor."""

from typing import Optional

from .ids import generate_id
from .models import (
    Playbook, Play, Player, RouteSegment, Point, GridConfig, now_ms
)


def upsert_route(player: Player, segment: RouteSegment) -> RouteSegment:
    """Store a route, replacing any existing route of the same type."""
    player.routes = [r for r in player.routes if r.type != segment.type]
    player.routes.append(segment)
    return segment


def clear_routes(player: Player) -> None:
    player.routes = []


def set_motion(player: Player, point: Point) -> None:
    player.motion = point


def clear_motion(player: Player) -> None:
    player.motion = None


def route_start(player: Player) -> Point:
    """Routes start where pre-snap motion ends, else at the alignment."""
    start = player.motion if player.motion is not None else player.position
    return start.model_copy()


def copy_play(play: Play, name: Optional[str] = None) -> Play:
    """Deep copy of a play with fresh ids throughout, off the grid."""
    clone = play.model_copy(deep=True)
    clone.id = generate_id()
    clone.name = name if name is not None else f"{play.name} (Copy)"
    clone.grid_position = None
    for player in clone.players:
        player.id = generate_id()
        for segment in player.routes:
            segment.id = generate_id()
    for tag in clone.tags:
        tag.id = generate_id()
    return clone


def new_playbook(name: str) -> Playbook:
    """Empty playbook with default grid columns."""
    stamp = now_ms()
    return Playbook(
        id=generate_id(),
        name=name,
        plays=[],
        grid_config=GridConfig(),
        created_at=stamp,
        updated_at=stamp,
    )
