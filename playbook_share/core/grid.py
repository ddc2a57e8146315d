"""Playbook grid: cell lookup and invariant-preserving placement."""

import logging
from typing import Dict, Optional, Tuple

from .errors import CellOccupiedConflict
from .models import Playbook, Play, GridPosition, GRID_COLUMNS

logger = logging.getLogger("playbook_share.grid")

Cell = Tuple[int, int]


def grid_index(playbook: Playbook) -> Dict[Cell, str]:
    """Derived (row, column) -> play id index over the plays' grid positions."""
    return {
        play.grid_position.as_cell(): play.id
        for play in playbook.plays
        if play.grid_position is not None
    }


def play_at_cell(playbook: Playbook, row: int, column: int) -> Optional[Play]:
    """Play occupying a cell, if any."""
    return next(
        (p for p in playbook.plays
         if p.grid_position is not None and p.grid_position.as_cell() == (row, column)),
        None
    )


def assign_to_cell(playbook: Playbook, play: Play, row: int, column: int) -> Play:
    """
    Place a play on a grid cell.

    Raises CellOccupiedConflict when a different play holds the cell; the
    caller clears the cell first (see move_to_cell). The position is
    validated before anything is mutated.
    """
    position = GridPosition(row=row, column=column)
    occupant = play_at_cell(playbook, row, column)
    if occupant is not None and occupant.id != play.id:
        raise CellOccupiedConflict((row, column), occupant.id)

    play.grid_position = position
    playbook.touch()
    return play


def clear_cell(playbook: Playbook, row: int, column: int) -> Optional[Play]:
    """Remove whatever play sits on a cell from the grid. Returns it."""
    occupant = play_at_cell(playbook, row, column)
    if occupant is not None:
        occupant.grid_position = None
        playbook.touch()
    return occupant


def move_to_cell(playbook: Playbook, play: Play, row: int, column: int) -> Optional[Play]:
    """Clear-then-assign. Returns the evicted play, if one was displaced."""
    GridPosition(row=row, column=column)
    evicted = None
    occupant = play_at_cell(playbook, row, column)
    if occupant is not None and occupant.id != play.id:
        evicted = clear_cell(playbook, row, column)
        logger.debug(f"Evicted play {evicted.id} from cell ({row}, {column})")
    assign_to_cell(playbook, play, row, column)
    return evicted


def remove_from_grid(playbook: Playbook, play: Play) -> None:
    """Take a play off the grid; it stays in the playbook."""
    if play.grid_position is not None:
        play.grid_position = None
        playbook.touch()


def rename_column(playbook: Playbook, index: int, name: str) -> bool:
    """Rename a grid column. Blank names are ignored."""
    if not 0 <= index < GRID_COLUMNS:
        raise IndexError(f"Column index {index} out of range")
    name = name.strip()
    if not name:
        return False
    playbook.grid_config.column_names[index] = name
    playbook.touch()
    return True
