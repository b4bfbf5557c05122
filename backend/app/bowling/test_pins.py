import pytest

from app.bowling.errors import InvalidStateError
from app.bowling.pins import (
    ALL_PINS,
    FORWARD_NEIGHBORS,
    LATERAL_NEIGHBORS,
    clusters,
    format_leave,
    forward_neighbors,
    neighbors,
    validate_pin,
)


def test_forward_adjacency_follows_rack_triangle() -> None:
    assert forward_neighbors(1) == frozenset()
    assert forward_neighbors(2) == {1}
    assert forward_neighbors(3) == {1}
    assert forward_neighbors(4) == {2}
    assert forward_neighbors(5) == {2, 3}
    assert forward_neighbors(6) == {3}
    assert forward_neighbors(7) == {4}
    assert forward_neighbors(8) == {4, 5}
    assert forward_neighbors(9) == {5, 6}
    assert forward_neighbors(10) == {6}


def test_lateral_adjacency_within_rows() -> None:
    assert LATERAL_NEIGHBORS[1] == frozenset()
    assert LATERAL_NEIGHBORS[2] == {3}
    assert LATERAL_NEIGHBORS[5] == {4, 6}
    assert LATERAL_NEIGHBORS[7] == {8}
    assert LATERAL_NEIGHBORS[9] == {8, 10}


def test_neighbors_are_symmetric() -> None:
    for p in ALL_PINS:
        for n in neighbors(p):
            assert p in neighbors(n)
    assert set(FORWARD_NEIGHBORS) == set(ALL_PINS)
    assert neighbors(5) == {2, 3, 4, 6, 8, 9}


def test_clusters_split_on_gaps() -> None:
    assert clusters({7, 10}) == [frozenset({7}), frozenset({10})]
    assert clusters({4, 7, 8}) == [frozenset({4, 7, 8})]
    assert clusters([]) == []


def test_format_leave() -> None:
    assert format_leave({10, 7}) == "7-10"
    assert format_leave([6, 4, 10, 7]) == "4-6-7-10"


def test_validate_pin_rejects_out_of_range() -> None:
    assert validate_pin(10) == 10
    with pytest.raises(InvalidStateError):
        validate_pin(0)
    with pytest.raises(InvalidStateError):
        validate_pin(11)
