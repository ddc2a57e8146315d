"""Field coordinate system and utilities."""

import math

import numpy as np

from .models import FieldConfig, Point


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    magnitude = abs(value)
    whole = math.floor(magnitude)
    # magnitude - whole is exact; adding 0.5 first is not
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


class FieldCoordinates:
    """
    Coordinate system utilities.
    Origin at the top-left corner of the field, in pixels.
    x+ toward the right sideline
    y+ toward the offense's own backfield (LOS near the bottom)
    """

    def __init__(self, config: FieldConfig = None):
        self.config = config or FieldConfig()
        self.scale = self.config.pixels_per_yard
        self.width = self.config.width_px
        self.length = self.config.length_px

    def in_bounds(self, point: Point) -> bool:
        """Check if position is on the playable rectangle."""
        return 0.0 <= point.x <= self.width and 0.0 <= point.y <= self.length

    def clamp(self, point: Point) -> Point:
        """Clip position to field bounds."""
        x = float(np.clip(point.x, 0.0, self.width))
        y = float(np.clip(point.y, 0.0, self.length))
        return Point(x=x, y=y)

    def to_half_yards(self, pixels: float) -> int:
        """Quantize a pixel coordinate to whole half-yard units."""
        return round_half_away_from_zero((pixels / self.scale) * 2)

    def from_half_yards(self, units: int) -> float:
        """Pixel coordinate of a half-yard unit count."""
        return (units / 2) * self.scale

    def snap(self, point: Point) -> Point:
        """Snap to the half-yard grid the editor works on."""
        return Point(
            x=self.from_half_yards(self.to_half_yards(point.x)),
            y=self.from_half_yards(self.to_half_yards(point.y)),
        )


DEFAULT_FIELD = FieldCoordinates()


def clamp_point(point: Point, field: FieldCoordinates = DEFAULT_FIELD) -> Point:
    """Clamp a point to the playable rectangle."""
    return field.clamp(point)


def snap_point(point: Point, field: FieldCoordinates = DEFAULT_FIELD) -> Point:
    """Clamp then snap a point to half-yard increments."""
    return field.snap(field.clamp(point))
