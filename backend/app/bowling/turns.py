from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Protocol

from app.bowling.game import FRAMES_PER_GAME, Frame, Game, SessionSetup, Throw, standing_pins_before
from app.bowling.pins import ALL_PINS, validate_pin
from app.bowling.scoring import calculate_total_score, is_game_complete


logger = logging.getLogger(__name__)


class GameSink(Protocol):
    def save(self, game: Game) -> None: ...


@dataclass(frozen=True)
class TurnState:
    """
    Cursor plus the uncommitted in-progress throw.

    - frame: 1-10
    - throw: 1-3 (1-based, as shown to the bowler)
    - knocked_pins / is_foul: the working selection, not yet part of the game
    """

    frame: int = 1
    throw: int = 1
    knocked_pins: frozenset[int] = frozenset()
    is_foul: bool = False
    is_complete: bool = False

    @property
    def throw_index(self) -> int:
        return self.throw - 1

    @property
    def can_undo(self) -> bool:
        return not self.is_complete and (self.frame > 1 or self.throw > 1)


def advance(state: TurnState, frame: Frame) -> TurnState:
    """
    Cursor position after a throw has been recorded at `state`'s cursor in
    `frame`. Pure: returns a new state with the working selection cleared.
    """
    committed = frame.throws[state.throw_index]

    if state.frame < FRAMES_PER_GAME:
        if committed.clears_rack and state.throw == 1:
            return TurnState(frame=state.frame + 1, throw=1)
        if state.throw == 1:
            return TurnState(frame=state.frame, throw=2)
        return TurnState(frame=state.frame + 1, throw=1)

    if state.throw == 1:
        return TurnState(frame=state.frame, throw=2)
    if state.throw == 2 and frame.first_two_clear_rack:
        return TurnState(frame=state.frame, throw=3)
    return TurnState(frame=state.frame, throw=state.throw, is_complete=True)


def rewind(state: TurnState, frames: list[Frame]) -> TurnState:
    """
    Cursor one throw back. Nothing is erased: the throw at the new cursor stays
    recorded until a commit overwrites it.
    """
    if not state.can_undo:
        return state
    if state.throw > 1:
        return TurnState(frame=state.frame, throw=state.throw - 1)
    prev = frames[state.frame - 2]
    return TurnState(frame=state.frame - 1, throw=max(1, len(prev.throws)))


class ScoringSession:
    """
    Interactive score entry for one game.

    Every player action returns the resulting TurnState. Actions that make no
    sense at the current cursor (tapping a pin that is already down, undoing at
    the first throw, anything after the game is complete) leave the state
    unchanged.

    Throws are written into the game in place. When the tenth frame is
    finished the game is marked complete and, if a sink was given, saved.
    """

    def __init__(self, game: Game | None = None, *, sink: GameSink | None = None) -> None:
        self._game = game or Game()
        self._sink = sink
        self._state = TurnState(is_complete=is_game_complete(self._game.frames))
        self._game.is_complete = self._state.is_complete

    @classmethod
    def start(cls, setup: SessionSetup | None = None, *, sink: GameSink | None = None) -> "ScoringSession":
        session = cls(Game(setup=setup or SessionSetup()), sink=sink)
        logger.info("started scoring session for game %s", session.game.id)
        return session

    @property
    def game(self) -> Game:
        return self._game

    def state(self) -> TurnState:
        return self._state

    def current_frame(self) -> Frame:
        return self._game.frame(self._state.frame)

    def standing_pins(self) -> frozenset[int]:
        """
        Pins standing before the throw at the cursor.
        """
        return standing_pins_before(self.current_frame(), self._state.throw_index)

    def visually_standing_pins(self) -> frozenset[int]:
        return self.standing_pins() - self._state.knocked_pins

    @property
    def strike_or_spare_label(self) -> str:
        return "Strike" if self.standing_pins() == ALL_PINS else "Spare"

    def total_score(self) -> int:
        return calculate_total_score(self._game.frames)

    def _noop(self, action: str) -> TurnState:
        logger.debug("ignored %s at frame %d throw %d", action, self._state.frame, self._state.throw)
        return self._state

    # --- Working selection ---
    def toggle_pin(self, pin: int) -> TurnState:
        validate_pin(pin)
        if self._state.is_complete or self._state.is_foul:
            return self._noop("toggle_pin")
        if pin not in self.standing_pins():
            return self._noop("toggle_pin")
        self._state = replace(self._state, knocked_pins=self._state.knocked_pins ^ {pin})
        return self._state

    def toggle_foul(self) -> TurnState:
        """
        Flip the working foul flag. Marking a foul drops any selected pins.
        """
        if self._state.is_complete:
            return self._noop("toggle_foul")
        is_foul = not self._state.is_foul
        self._state = replace(
            self._state,
            is_foul=is_foul,
            knocked_pins=frozenset() if is_foul else self._state.knocked_pins,
        )
        return self._state

    def set_pocket_hit(self, frame_number: int, value: bool = True) -> None:
        self._game.frame(frame_number).is_pocket_hit = value

    # --- Committing throws ---
    def commit(self, knocked: Iterable[int], is_foul: bool = False) -> TurnState:
        pins = frozenset(validate_pin(p) for p in knocked)
        if self._state.is_complete:
            return self._noop("commit")
        if is_foul and pins:
            return self._noop("commit")
        if not pins <= self.standing_pins():
            return self._noop("commit")

        frame = self.current_frame()
        frame.set_throw(self._state.throw_index, Throw(knocked_pins=pins, is_foul=is_foul))
        self._state = advance(self._state, frame)

        if self._state.is_complete:
            self._complete()
        return self._state

    def next_throw(self) -> TurnState:
        """
        Commit the working selection; nothing selected is a miss.
        """
        return self.commit(self._state.knocked_pins, self._state.is_foul)

    def declare_miss(self) -> TurnState:
        return self.commit(frozenset(), False)

    def declare_foul(self) -> TurnState:
        return self.commit(frozenset(), True)

    def declare_strike_or_spare(self) -> TurnState:
        if self._state.is_complete:
            return self._noop("declare_strike_or_spare")
        standing = self.standing_pins()
        if not standing:
            return self._noop("declare_strike_or_spare")
        return self.commit(standing, False)

    def undo(self) -> TurnState:
        if not self._state.can_undo:
            return self._noop("undo")
        self._state = rewind(self._state, self._game.frames)
        return self._state

    def _complete(self) -> None:
        self._game.is_complete = True
        logger.info("game %s complete with %d", self._game.id, self.total_score())
        if self._sink is not None:
            self._sink.save(self._game)
