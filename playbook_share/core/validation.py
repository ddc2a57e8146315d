"""Validation functions for document model invariants."""

from typing import Dict, Tuple

from .models import Playbook, Play, Player, GRID_COLUMNS


class ValidationError(Exception):
    """Custom validation error."""
    pass


def validate_player(player: Player) -> None:
    """
    Validate player invariants:
    - At most one route per route type
    """
    types = [segment.type for segment in player.routes]
    if len(set(types)) != len(types):
        raise ValidationError(f"Player {player.id} has more than one route of the same type")


def validate_play(play: Play) -> None:
    """Validate every player of a play."""
    for player in play.players:
        validate_player(player)


def validate_playbook(playbook: Playbook) -> None:
    """
    Validate playbook invariants:
    - Exactly 5 column names
    - At most one play per grid cell
    - Plays are valid

    Id uniqueness inside a container is assumed (ids are random uuids) and
    is not checked here.
    """
    if len(playbook.grid_config.column_names) != GRID_COLUMNS:
        raise ValidationError(
            f"Playbook {playbook.id} must have {GRID_COLUMNS} column names, "
            f"got {len(playbook.grid_config.column_names)}"
        )

    occupied: Dict[Tuple[int, int], str] = {}
    for play in playbook.plays:
        validate_play(play)
        if play.grid_position is None:
            continue
        cell = play.grid_position.as_cell()
        if cell in occupied:
            raise ValidationError(
                f"Playbook {playbook.id} places plays {occupied[cell]} and {play.id} "
                f"on the same cell {cell}"
            )
        occupied[cell] = play.id
