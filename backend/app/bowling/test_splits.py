import pytest

from app.bowling.game import Frame, make_throw
from app.bowling.pins import ALL_PINS, format_leave
from app.bowling.splits import get_split_throw_indexes, is_split_leave


def _leave(frame_number: int, *leave: int) -> Frame:
    return Frame(number=frame_number, throws=[make_throw(ALL_PINS - set(leave))])


@pytest.mark.parametrize(
    "leave",
    [
        (7, 10),
        (4, 6),
        (5, 7),
        (5, 10),
        (8, 10),
        (7, 9),
        (4, 10),
        (6, 7),
        (2, 7),
        (3, 10),
        (4, 7, 10),
        (6, 7, 10),
        (4, 6, 7, 10),
        (4, 6, 7, 9, 10),
    ],
    ids=lambda leave: format_leave(leave),
)
def test_named_splits(leave: tuple[int, ...]) -> None:
    assert is_split_leave(_leave(1, *leave), 0)


@pytest.mark.parametrize(
    "leave",
    [
        (2,),
        (10,),
        (7, 8),
        (4, 7),
        (2, 4, 5, 8),
        (3, 6, 9, 10),
        (5, 8, 9),
        (1, 7, 10),
        (1, 2, 4, 7),
    ],
    ids=lambda leave: format_leave(leave),
)
def test_non_splits(leave: tuple[int, ...]) -> None:
    assert not is_split_leave(_leave(1, *leave), 0)


def test_strike_is_not_a_split() -> None:
    f = Frame(number=1, throws=[make_throw(ALL_PINS)])
    assert not is_split_leave(f, 0)
    assert get_split_throw_indexes(f) == []


def test_foul_and_gutter_are_not_splits() -> None:
    assert not is_split_leave(Frame(number=1, throws=[make_throw({1, 2, 3}, foul=True)]), 0)
    assert not is_split_leave(Frame(number=1, throws=[make_throw()]), 0)


def test_any_index_is_accepted() -> None:
    f = _leave(3, 7, 10)
    assert not is_split_leave(f, 1)
    assert not is_split_leave(f, 5)
    assert not is_split_leave(f, -1)


def test_second_ball_leave_is_not_a_split() -> None:
    f = Frame(number=2, throws=[make_throw(ALL_PINS - {4, 7}), make_throw({4})])
    assert not is_split_leave(f, 1)
    assert get_split_throw_indexes(f) == []


def test_tenth_frame_fresh_rack_split_after_strike() -> None:
    f = Frame(number=10, throws=[make_throw(ALL_PINS), make_throw(ALL_PINS - {7, 10})])
    assert get_split_throw_indexes(f) == [1]


def test_converted_split_still_reported_on_first_ball() -> None:
    f = Frame(number=5, throws=[make_throw(ALL_PINS - {7, 10}), make_throw({7, 10})])
    assert get_split_throw_indexes(f) == [0]
