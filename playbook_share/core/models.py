"""Canonical document models for playbook sharing."""

import time
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ============================================================================
# Constants
# ============================================================================

PIXELS_PER_YARD = 25
GRID_ROWS = 4
GRID_COLUMNS = 5
DEFAULT_COLUMN_NAMES = ["A", "B", "C", "D", "E"]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class DocumentModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================================
# Enums
# ============================================================================

class RouteType(str, Enum):
    PRIMARY = "primary"
    OPTION = "option"
    CHECK = "check"
    ENDZONE = "endzone"


# ============================================================================
# Field
# ============================================================================

class FieldConfig(BaseModel):
    """Field dimensions. Coordinates are pixels, origin top-left."""
    pixels_per_yard: int = Field(default=PIXELS_PER_YARD, ge=1)
    width_yards: float = Field(default=25.0, gt=0.0)
    length_yards: float = Field(default=25.0, gt=0.0)
    line_of_scrimmage_yards: float = Field(default=20.0, ge=0.0)

    @property
    def width_px(self) -> float:
        return self.width_yards * self.pixels_per_yard

    @property
    def length_px(self) -> float:
        return self.length_yards * self.pixels_per_yard

    @property
    def line_of_scrimmage_px(self) -> float:
        return self.line_of_scrimmage_yards * self.pixels_per_yard


# ============================================================================
# Diagram entities
# ============================================================================

class Point(DocumentModel):
    """2D coordinate (pixels)."""
    x: float = Field(allow_inf_nan=False)
    y: float = Field(allow_inf_nan=False)


class RouteSegment(DocumentModel):
    """One drawn route of a player. Meaningful once it has two points."""
    id: str
    type: RouteType = RouteType.PRIMARY
    points: List[Point] = Field(default_factory=list)
    preset: Optional[str] = None


class Player(DocumentModel):
    """Player token on the diagram."""
    id: str
    role: str
    label: str
    color: str
    position: Point
    motion: Optional[Point] = None
    routes: List[RouteSegment] = Field(default_factory=list)

    @field_validator('routes')
    @classmethod
    def validate_single_route_per_type(cls, v: List[RouteSegment]) -> List[RouteSegment]:
        """A player holds at most one segment of each route type."""
        seen = set()
        for segment in v:
            if segment.type in seen:
                raise ValueError(f"Player has more than one {segment.type.value} route")
            seen.add(segment.type)
        return v

    def route_of_type(self, route_type: RouteType) -> Optional[RouteSegment]:
        return next((r for r in self.routes if r.type == route_type), None)


class PlayTag(DocumentModel):
    """Small annotation badge on a play."""
    id: str
    text: str
    color: str


class GridPosition(DocumentModel):
    """Cell of the playbook grid (rows 1-4, columns A-E, zero based)."""
    row: int = Field(ge=0, le=GRID_ROWS - 1)
    column: int = Field(ge=0, le=GRID_COLUMNS - 1)

    def as_cell(self):
        return (self.row, self.column)


class Play(DocumentModel):
    """Complete play diagram."""
    id: str
    name: str
    players: List[Player] = Field(default_factory=list)
    tags: List[PlayTag] = Field(default_factory=list)
    grid_position: Optional[GridPosition] = None
    ball_position: Optional[Point] = None

    @field_validator('tags', mode='before')
    @classmethod
    def default_tags(cls, v):
        return [] if v is None else v

    def player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)


# ============================================================================
# Playbook
# ============================================================================

class GridConfig(DocumentModel):
    """Column headers of the playbook grid."""
    column_names: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COLUMN_NAMES),
        min_length=GRID_COLUMNS,
        max_length=GRID_COLUMNS,
    )


class Playbook(DocumentModel):
    """A named collection of plays; the unit of sharing."""
    id: str
    name: str
    plays: List[Play] = Field(default_factory=list)
    grid_config: GridConfig = Field(default_factory=GridConfig)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    def play(self, play_id: str) -> Optional[Play]:
        return next((p for p in self.plays if p.id == play_id), None)

    def touch(self) -> None:
        self.updated_at = now_ms()

    def to_document(self) -> dict:
        """Full-fidelity JSON-ready dict (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)
