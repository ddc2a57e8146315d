"""Test the compact positional-array codec."""

import pytest
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from playbook_share.codec.minify import (
    FORMAT_VERSION, ROUTE_TYPE_CODES, PlayFields, PlayerFields, RouteFields,
    minify_playbook, unminify_playbook, is_minified, get_codec
)
from playbook_share.core.errors import DecodeError, UnsupportedVersion
from playbook_share.core.field import DEFAULT_FIELD
from playbook_share.core.models import Playbook, RouteType, Point


def fixed_clock():
    return 1_800_000_000_000


def test_minified_layout(playbook):
    data = minify_playbook(playbook)

    assert data[0] == FORMAT_VERSION == 3
    assert data[1:4] == ["pb-1", "Spring League", ["Open", "Red", "Goal", "2pt", "Trick"]]

    flood = data[4][0]
    assert flood[PlayFields.ID] == "play-flood"
    assert flood[PlayFields.GRID_POSITION] == [1, 2]
    assert flood[PlayFields.BALL_POSITION] == [25, 40]
    assert flood[PlayFields.TAGS] == [["t-1", "3rd & long", "#f59e0b"]]

    wr = flood[PlayFields.PLAYERS][0]
    assert wr[PlayerFields.POSITION] == [4, 40]
    assert wr[PlayerFields.MOTION] == [9, 40]
    primary = wr[PlayerFields.ROUTES][0]
    assert primary[RouteFields.TYPE] == 0
    assert primary[RouteFields.PRESET] == "post"
    assert wr[PlayerFields.ROUTES][1][RouteFields.PRESET] is None

    quick = data[4][1]
    assert quick[PlayFields.TAGS] == []
    assert quick[PlayFields.GRID_POSITION] is None
    assert quick[PlayFields.BALL_POSITION] is None
    assert quick[PlayFields.PLAYERS][0][PlayerFields.MOTION] is None


def test_round_trip(playbook):
    """Snapped documents survive minify/unminify except for timestamps."""
    decoded = unminify_playbook(minify_playbook(playbook), clock=fixed_clock)

    assert isinstance(decoded, Playbook)
    assert decoded.created_at == decoded.updated_at == fixed_clock()
    assert decoded.model_dump(exclude={"created_at", "updated_at"}) == \
        playbook.model_dump(exclude={"created_at", "updated_at"})


def test_quantization_is_lossy_below_half_yard(playbook):
    player = playbook.plays[1].players[0]
    player.position = Point(x=313.0, y=561.0)

    decoded = unminify_playbook(minify_playbook(playbook))
    assert decoded.plays[1].players[0].position == Point(x=312.5, y=562.5)


def test_quantization_idempotence():
    """Quantization is stable after one application."""
    rng = np.random.Generator(np.random.PCG64(7))
    for x in rng.uniform(-1000.0, 1000.0, size=500):
        once = DEFAULT_FIELD.from_half_yards(DEFAULT_FIELD.to_half_yards(float(x)))
        twice = DEFAULT_FIELD.from_half_yards(DEFAULT_FIELD.to_half_yards(once))
        assert once == twice


def test_quantization_tie_break():
    # 6.25 px is exactly a quarter yard -> half a unit, rounded away from zero
    assert DEFAULT_FIELD.to_half_yards(6.25) == 1
    assert DEFAULT_FIELD.to_half_yards(-6.25) == -1


def test_version_pass_through():
    """Unknown versions and non-arrays come back unchanged."""
    as_dict = {0: 99, "name": "x"}
    assert unminify_playbook(as_dict) is as_dict

    future = [99, "id", "name", ["A"] * 5, []]
    assert unminify_playbook(future) is future

    for value in (None, "3", [], [True, "id"], ["3", "id"]):
        assert unminify_playbook(value) is value


def test_is_minified():
    assert is_minified([3, "id", "name", [], []])
    assert is_minified([3.0])
    assert not is_minified([2, "id"])
    assert not is_minified([True])
    assert not is_minified({"0": 3})
    assert not is_minified("3")
    assert not is_minified([])


def test_get_codec_unsupported():
    assert get_codec(3).version == 3
    with pytest.raises(UnsupportedVersion):
        get_codec(4)
    with pytest.raises(UnsupportedVersion):
        get_codec(3.5)


def test_unknown_route_code_defaults_to_primary(playbook):
    data = minify_playbook(playbook)
    data[4][0][PlayFields.PLAYERS][0][PlayerFields.ROUTES][1][RouteFields.TYPE] = 42

    decoded = unminify_playbook(data)
    wr = decoded.plays[0].players[0]
    # The defaulted route collides with the real primary: last one wins
    assert [(r.id, r.type) for r in wr.routes] == [("r-option", RouteType.PRIMARY)]


def test_unknown_route_code_on_single_route(playbook):
    data = minify_playbook(playbook)
    c_routes = data[4][0][PlayFields.PLAYERS][2][PlayerFields.ROUTES]
    del c_routes[1]
    c_routes[0][RouteFields.TYPE] = 9

    decoded = unminify_playbook(data)
    assert decoded.plays[0].players[2].routes[0].type == RouteType.PRIMARY


def test_short_tuples_use_defaults(playbook):
    data = minify_playbook(playbook)
    quick = data[4][1]
    del quick[PlayFields.TAGS:]

    decoded = unminify_playbook(data)
    play = decoded.plays[1]
    assert play.tags == []
    assert play.grid_position is None
    assert play.ball_position is None


def test_null_tags_default_to_empty(playbook):
    data = minify_playbook(playbook)
    data[4][0][PlayFields.TAGS] = None
    assert unminify_playbook(data).plays[0].tags == []


def test_malformed_payloads_raise_decode_error(playbook):
    bad_point = minify_playbook(playbook)
    bad_point[4][0][PlayFields.BALL_POSITION] = [1, 2, 3]
    with pytest.raises(DecodeError):
        unminify_playbook(bad_point)

    bad_players = minify_playbook(playbook)
    bad_players[4][0][PlayFields.PLAYERS] = "nope"
    with pytest.raises(DecodeError):
        unminify_playbook(bad_players)

    with pytest.raises(DecodeError):
        unminify_playbook([3])

    with pytest.raises(DecodeError):
        unminify_playbook([3, "id", "name", ["A", "B"], []])


def test_route_type_codes_are_stable():
    assert ROUTE_TYPE_CODES == {
        RouteType.PRIMARY: 0,
        RouteType.OPTION: 1,
        RouteType.CHECK: 2,
        RouteType.ENDZONE: 3,
    }


def test_out_of_field_points_are_clamped(playbook):
    data = minify_playbook(playbook)
    data[4][1][PlayFields.PLAYERS][0][PlayerFields.POSITION] = [-40, 99999]

    decoded = unminify_playbook(data)
    position = decoded.plays[1].players[0].position
    assert position == Point(x=0.0, y=625.0)
    # Stored result exports again
    assert minify_playbook(decoded)[4][1][PlayFields.PLAYERS][0][PlayerFields.POSITION] == [0, 50]


def test_huge_coordinate_raises_decode_error(playbook):
    data = minify_playbook(playbook)
    data[4][0][PlayFields.BALL_POSITION] = [10**400, 1]
    with pytest.raises(DecodeError):
        unminify_playbook(data)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
