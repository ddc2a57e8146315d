"""
Compact positional-array codec for playbooks.

A minified playbook is a nested list with no field names. The first element
is the format version; each entity is a fixed-order tuple whose indices are
declared once below and shared by encoding and decoding.

    Playbook [version, id, name, columnNames, plays]
    Play     [id, name, players, tags, [row, column] | null, point | null]
    Player   [id, role, label, color, point, point | null, routes]
    Route    [id, routeTypeCode, points, preset | null]
    Tag      [id, text, color]
    Point    [x, y] in whole half-yard units

Quantization is lossy below half a yard. The editor snaps input to half
yards, so snapped documents survive a round trip exactly. Creation and
update timestamps are not transmitted; decoding stamps them with the
import time.
"""

import logging
import math
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

from ..core.errors import DecodeError, UnsupportedVersion
from ..core.field import FieldCoordinates, DEFAULT_FIELD
from ..core.models import (
    Playbook, Play, Player, RouteSegment, PlayTag, Point, GridPosition,
    GridConfig, RouteType, now_ms
)

logger = logging.getLogger("playbook_share.codec")

FORMAT_VERSION = 3

ROUTE_TYPE_CODES: Dict[RouteType, int] = {
    RouteType.PRIMARY: 0,
    RouteType.OPTION: 1,
    RouteType.CHECK: 2,
    RouteType.ENDZONE: 3,
}
ROUTE_TYPES_BY_CODE: Dict[int, RouteType] = {v: k for k, v in ROUTE_TYPE_CODES.items()}


# ============================================================================
# Field layouts
# ============================================================================

class PlaybookFields(IntEnum):
    VERSION = 0
    ID = 1
    NAME = 2
    COLUMN_NAMES = 3
    PLAYS = 4


class PlayFields(IntEnum):
    ID = 0
    NAME = 1
    PLAYERS = 2
    TAGS = 3
    GRID_POSITION = 4
    BALL_POSITION = 5


class PlayerFields(IntEnum):
    ID = 0
    ROLE = 1
    LABEL = 2
    COLOR = 3
    POSITION = 4
    MOTION = 5
    ROUTES = 6


class RouteFields(IntEnum):
    ID = 0
    TYPE = 1
    POINTS = 2
    PRESET = 3


class TagFields(IntEnum):
    ID = 0
    TEXT = 1
    COLOR = 2


def _pack(layout, values: Dict[IntEnum, Any]) -> list:
    """Lay out values in the index order declared by a field enum."""
    return [values[field] for field in layout]


def _field(data: list, field: IntEnum, default: Any = None) -> Any:
    """Read an optional trailing element; absent or null gives the default."""
    if len(data) <= field:
        return default
    value = data[field]
    return default if value is None else value


def _required(data: list, field: IntEnum) -> Any:
    if len(data) <= field or data[field] is None:
        raise DecodeError(f"Missing required field {field.name.lower()} at index {int(field)}")
    return data[field]


def _as_list(value: Any, what: str) -> list:
    if not isinstance(value, (list, tuple)):
        raise DecodeError(f"Expected an array for {what}, got {type(value).__name__}")
    return list(value)


# ============================================================================
# Version 3
# ============================================================================

class PlaybookCodecV3:
    """Positional arrays with half-yard quantized points."""

    version = 3

    def __init__(self, field: FieldCoordinates = DEFAULT_FIELD):
        self.field = field

    # -- encode --------------------------------------------------------------

    def minify_point(self, p: Point) -> List[int]:
        return [self.field.to_half_yards(p.x), self.field.to_half_yards(p.y)]

    def minify_tag(self, t: PlayTag) -> list:
        return _pack(TagFields, {
            TagFields.ID: t.id,
            TagFields.TEXT: t.text,
            TagFields.COLOR: t.color,
        })

    def minify_route(self, r: RouteSegment) -> list:
        return _pack(RouteFields, {
            RouteFields.ID: r.id,
            RouteFields.TYPE: ROUTE_TYPE_CODES[r.type],
            RouteFields.POINTS: [self.minify_point(p) for p in r.points],
            RouteFields.PRESET: r.preset or None,
        })

    def minify_player(self, p: Player) -> list:
        return _pack(PlayerFields, {
            PlayerFields.ID: p.id,
            PlayerFields.ROLE: p.role,
            PlayerFields.LABEL: p.label,
            PlayerFields.COLOR: p.color,
            PlayerFields.POSITION: self.minify_point(p.position),
            PlayerFields.MOTION: self.minify_point(p.motion) if p.motion else None,
            PlayerFields.ROUTES: [self.minify_route(r) for r in p.routes],
        })

    def minify_play(self, p: Play) -> list:
        grid = p.grid_position
        return _pack(PlayFields, {
            PlayFields.ID: p.id,
            PlayFields.NAME: p.name,
            PlayFields.PLAYERS: [self.minify_player(pl) for pl in p.players],
            PlayFields.TAGS: [self.minify_tag(t) for t in p.tags],
            PlayFields.GRID_POSITION: [grid.row, grid.column] if grid else None,
            PlayFields.BALL_POSITION: self.minify_point(p.ball_position) if p.ball_position else None,
        })

    def minify(self, pb: Playbook) -> list:
        return _pack(PlaybookFields, {
            PlaybookFields.VERSION: self.version,
            PlaybookFields.ID: pb.id,
            PlaybookFields.NAME: pb.name,
            PlaybookFields.COLUMN_NAMES: list(pb.grid_config.column_names),
            PlaybookFields.PLAYS: [self.minify_play(p) for p in pb.plays],
        })

    # -- decode --------------------------------------------------------------

    def unminify_point(self, data: Any) -> Point:
        data = _as_list(data, "point")
        if len(data) != 2:
            raise DecodeError(f"Point must have 2 coordinates, got {len(data)}")
        try:
            x, y = (self.field.from_half_yards(q) for q in data)
        except OverflowError as e:
            raise DecodeError(f"Point coordinate out of range: {data!r}") from e
        if not (math.isfinite(x) and math.isfinite(y)):
            raise DecodeError(f"Point coordinate is not finite: {data!r}")
        return self.field.clamp(Point(x=x, y=y))

    def unminify_tag(self, data: Any) -> PlayTag:
        data = _as_list(data, "tag")
        return PlayTag(
            id=_required(data, TagFields.ID),
            text=_field(data, TagFields.TEXT, ""),
            color=_field(data, TagFields.COLOR, ""),
        )

    def unminify_route(self, data: Any) -> RouteSegment:
        data = _as_list(data, "route")
        code = _field(data, RouteFields.TYPE, 0)
        route_type = ROUTE_TYPES_BY_CODE.get(code) if isinstance(code, int) else None
        if route_type is None:
            logger.warning(f"Unknown route type code {code!r}, decoding as primary")
            route_type = RouteType.PRIMARY
        return RouteSegment(
            id=_required(data, RouteFields.ID),
            type=route_type,
            points=[self.unminify_point(p) for p in _as_list(_field(data, RouteFields.POINTS, []), "points")],
            preset=_field(data, RouteFields.PRESET) or None,
        )

    def unminify_player(self, data: Any) -> Player:
        data = _as_list(data, "player")
        motion = _field(data, PlayerFields.MOTION)
        routes: List[RouteSegment] = []
        for raw in _as_list(_field(data, PlayerFields.ROUTES, []), "routes"):
            segment = self.unminify_route(raw)
            # One route per type, last one wins (an unknown code may collide)
            routes = [r for r in routes if r.type != segment.type]
            routes.append(segment)
        return Player(
            id=_required(data, PlayerFields.ID),
            role=_field(data, PlayerFields.ROLE, ""),
            label=_field(data, PlayerFields.LABEL, ""),
            color=_field(data, PlayerFields.COLOR, ""),
            position=self.unminify_point(_required(data, PlayerFields.POSITION)),
            motion=self.unminify_point(motion) if motion is not None else None,
            routes=routes,
        )

    def unminify_play(self, data: Any) -> Play:
        data = _as_list(data, "play")
        grid = _field(data, PlayFields.GRID_POSITION)
        ball = _field(data, PlayFields.BALL_POSITION)
        if grid is not None:
            grid = _as_list(grid, "grid position")
            if len(grid) != 2:
                raise DecodeError(f"Grid position must have 2 elements, got {len(grid)}")
        return Play(
            id=_required(data, PlayFields.ID),
            name=_field(data, PlayFields.NAME, ""),
            players=[self.unminify_player(p) for p in _as_list(_field(data, PlayFields.PLAYERS, []), "players")],
            tags=[self.unminify_tag(t) for t in _as_list(_field(data, PlayFields.TAGS, []), "tags")],
            grid_position=GridPosition(row=grid[0], column=grid[1]) if grid is not None else None,
            ball_position=self.unminify_point(ball) if ball is not None else None,
        )

    def unminify(self, data: list, stamp: int) -> Playbook:
        column_names = _field(data, PlaybookFields.COLUMN_NAMES)
        return Playbook(
            id=_required(data, PlaybookFields.ID),
            name=_field(data, PlaybookFields.NAME, ""),
            grid_config=GridConfig(column_names=column_names) if column_names is not None else GridConfig(),
            plays=[self.unminify_play(p) for p in _as_list(_field(data, PlaybookFields.PLAYS, []), "plays")],
            created_at=stamp,
            updated_at=stamp,
        )


# ============================================================================
# Version registry
# ============================================================================

_CODECS: Dict[int, Any] = {}


def register_codec(codec) -> None:
    """Make a codec available for decoding payloads of its version."""
    _CODECS[codec.version] = codec


def get_codec(version: Any):
    """Codec for a version marker; raises UnsupportedVersion."""
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        raise UnsupportedVersion(version)
    codec = _CODECS.get(int(version)) if float(version).is_integer() else None
    if codec is None:
        raise UnsupportedVersion(version)
    return codec


register_codec(PlaybookCodecV3())


def minify_playbook(pb: Playbook) -> list:
    """Encode a playbook in the current compact format."""
    return _CODECS[FORMAT_VERSION].minify(pb)


def is_minified(data: Any) -> bool:
    """True for a compact array carrying the current version marker."""
    if not isinstance(data, (list, tuple)) or not data:
        return False
    marker = data[0]
    return not isinstance(marker, bool) and marker == FORMAT_VERSION


def unminify_playbook(data: Any, clock: Optional[Callable[[], int]] = None) -> Any:
    """
    Decode a compact playbook.

    Anything that is not an array with a registered version marker is
    returned unchanged, so already-expanded documents pass straight through.
    A registered version with a malformed body raises DecodeError.
    """
    if not isinstance(data, (list, tuple)) or not data:
        return data
    try:
        codec = get_codec(data[0])
    except UnsupportedVersion as e:
        logger.debug(f"Passing payload through undecoded: {e}")
        return data

    stamp = (clock or now_ms)()
    try:
        return codec.unminify(list(data), stamp)
    except DecodeError:
        raise
    except (TypeError, ValueError, ArithmeticError) as e:
        # pydantic.ValidationError is a ValueError
        raise DecodeError(f"Malformed version {codec.version} payload: {e}") from e
