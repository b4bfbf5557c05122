import copy

import pytest

from app.bowling.errors import InvalidStateError
from app.bowling.game import Game, SessionSetup, make_throw
from app.bowling.pins import ALL_PINS
from app.bowling.scoring import calculate_cumulative_scores
from app.bowling.turns import ScoringSession, TurnState


class _Sink:
    def __init__(self) -> None:
        self.saved: list[Game] = []

    def save(self, game: Game) -> None:
        self.saved.append(copy.deepcopy(game))


def _cursor(s: ScoringSession) -> tuple[int, int]:
    st = s.state()
    return (st.frame, st.throw)


def test_initial_state() -> None:
    s = ScoringSession()
    assert s.state() == TurnState(frame=1, throw=1)
    assert s.standing_pins() == ALL_PINS
    assert s.strike_or_spare_label == "Strike"


def test_toggle_pin_flips_selection() -> None:
    s = ScoringSession()
    s.toggle_pin(3)
    s.toggle_pin(5)
    assert s.state().knocked_pins == {3, 5}
    s.toggle_pin(3)
    assert s.state().knocked_pins == {5}
    assert s.visually_standing_pins() == ALL_PINS - {5}


def test_toggle_pin_ignores_fallen_pins_and_fouls() -> None:
    s = ScoringSession()
    s.commit({1, 2, 3})
    before = s.state()
    s.toggle_pin(2)
    assert s.state() == before

    s.toggle_foul()
    s.toggle_pin(4)
    assert s.state().knocked_pins == frozenset()
    assert s.state().is_foul


def test_toggle_pin_out_of_range_fails_fast() -> None:
    with pytest.raises(InvalidStateError):
        ScoringSession().toggle_pin(11)


def test_toggle_foul_clears_selection() -> None:
    s = ScoringSession()
    s.toggle_pin(1)
    s.toggle_foul()
    assert s.state().knocked_pins == frozenset()
    s.toggle_foul()
    assert not s.state().is_foul


def test_strike_advances_to_next_frame() -> None:
    s = ScoringSession()
    s.declare_strike_or_spare()
    assert _cursor(s) == (2, 1)
    assert s.game.frames[0].throws == [make_throw(ALL_PINS)]


def test_two_balls_then_next_frame() -> None:
    s = ScoringSession()
    s.commit({1, 2, 3, 4, 5, 6, 7})
    assert _cursor(s) == (1, 2)
    assert s.standing_pins() == {8, 9, 10}
    assert s.strike_or_spare_label == "Spare"
    s.declare_strike_or_spare()
    assert _cursor(s) == (2, 1)
    assert s.game.frames[0].is_spare


def test_foul_strike_does_not_skip_second_ball() -> None:
    s = ScoringSession()
    s.declare_foul()
    assert _cursor(s) == (1, 2)
    assert s.standing_pins() == ALL_PINS


def test_commit_resets_working_selection() -> None:
    s = ScoringSession()
    s.toggle_pin(1)
    s.toggle_pin(2)
    s.next_throw()
    assert s.state() == TurnState(frame=1, throw=2)
    assert s.game.frames[0].throws == [make_throw({1, 2})]


def test_next_throw_with_nothing_selected_is_a_miss() -> None:
    s = ScoringSession()
    s.next_throw()
    assert s.game.frames[0].throws == [make_throw()]


def test_illegal_commits_are_noops() -> None:
    s = ScoringSession()
    s.commit({1, 2})
    before = s.state()
    s.commit({1}, False)
    s.commit({3}, True)
    assert s.state() == before
    assert len(s.game.frames[0].throws) == 1


def test_undo_at_start_is_noop() -> None:
    s = ScoringSession()
    assert s.undo() == TurnState()


def test_undo_rewinds_without_erasing() -> None:
    s = ScoringSession()
    s.commit({1, 2, 3})
    s.commit({4})
    assert _cursor(s) == (2, 1)

    s.undo()
    assert _cursor(s) == (1, 2)
    assert s.game.frames[0].throws == [make_throw({1, 2, 3}), make_throw({4})]
    assert s.standing_pins() == ALL_PINS - {1, 2, 3}

    s.undo()
    assert _cursor(s) == (1, 1)
    assert len(s.game.frames[0].throws) == 2


def test_undo_crosses_into_previous_strike_frame() -> None:
    s = ScoringSession()
    s.declare_strike_or_spare()
    s.toggle_pin(4)
    s.undo()
    assert s.state() == TurnState(frame=1, throw=1)


def test_undo_then_recommit_restores_state() -> None:
    s = ScoringSession()
    s.commit({1, 2, 3})
    s.commit({4, 5})
    s.commit({1, 2, 3, 4, 5, 6, 7, 8})
    snapshot = (s.state(), copy.deepcopy(s.game.frames))

    s.undo()
    s.commit({1, 2, 3, 4, 5, 6, 7, 8})
    assert (s.state(), s.game.frames) == snapshot


def test_recommit_strike_drops_stale_second_ball() -> None:
    s = ScoringSession()
    s.commit({1, 2})
    s.commit({3})
    s.undo()
    s.undo()
    s.declare_strike_or_spare()
    assert s.game.frames[0].throws == [make_throw(ALL_PINS)]
    assert _cursor(s) == (2, 1)


def _bowl_to_tenth(s: ScoringSession) -> None:
    for _ in range(9):
        s.declare_strike_or_spare()
    assert _cursor(s) == (10, 1)


def test_tenth_frame_open_completes_after_two() -> None:
    sink = _Sink()
    s = ScoringSession(sink=sink)
    _bowl_to_tenth(s)
    s.commit({1, 2, 3})
    assert _cursor(s) == (10, 2)
    s.declare_miss()
    assert s.state().is_complete
    assert s.game.is_complete
    assert len(sink.saved) == 1


def test_tenth_frame_strike_strike_seven() -> None:
    sink = _Sink()
    s = ScoringSession(sink=sink)
    _bowl_to_tenth(s)
    s.declare_strike_or_spare()
    assert _cursor(s) == (10, 2)
    assert s.standing_pins() == ALL_PINS
    s.declare_strike_or_spare()
    assert _cursor(s) == (10, 3)
    assert not s.state().is_complete
    s.commit({1, 2, 3, 4, 5, 6, 7})
    assert s.state().is_complete
    assert calculate_cumulative_scores(s.game.frames)[9] == 297
    assert sink.saved[0].is_complete


def test_tenth_frame_spare_earns_third_ball() -> None:
    s = ScoringSession()
    _bowl_to_tenth(s)
    s.commit({1, 2, 3, 4})
    s.declare_strike_or_spare()
    assert _cursor(s) == (10, 3)
    assert s.standing_pins() == ALL_PINS


def test_perfect_game_through_session() -> None:
    s = ScoringSession()
    for _ in range(12):
        s.declare_strike_or_spare()
    assert s.state().is_complete
    assert s.total_score() == 300


def test_complete_is_terminal() -> None:
    s = ScoringSession()
    for _ in range(9):
        s.declare_strike_or_spare()
    s.declare_miss()
    s.declare_miss()
    done = s.state()
    assert done.is_complete
    assert not done.can_undo

    s.undo()
    s.declare_strike_or_spare()
    s.toggle_pin(1)
    s.toggle_foul()
    assert s.state() == done


def test_pocket_hit_flag() -> None:
    s = ScoringSession.start(SessionSetup(oil_pattern="sport"))
    s.set_pocket_hit(1)
    assert s.game.frames[0].is_pocket_hit
    assert s.game.setup.oil_pattern == "sport"
    with pytest.raises(InvalidStateError):
        s.set_pocket_hit(11)
