from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable
from uuid import uuid4

from app.bowling.errors import InvalidStateError
from app.bowling.pins import ALL_PINS, validate_pin


FRAMES_PER_GAME = 10
PERFECT_GAME = 300


@dataclass(frozen=True)
class Throw:
    """
    A single delivery.

    - knocked_pins: pins that went down on this delivery
    - is_foul: a foul credits zero pins regardless of what fell
    """

    knocked_pins: frozenset[int] = frozenset()
    is_foul: bool = False

    def __post_init__(self) -> None:
        pins = frozenset(self.knocked_pins)
        for p in pins:
            validate_pin(p)
        object.__setattr__(self, "knocked_pins", pins)

    @property
    def pins(self) -> int:
        return 0 if self.is_foul else len(self.knocked_pins)

    @property
    def clears_rack(self) -> bool:
        return self.pins == 10

    def credited(self, standing: frozenset[int]) -> frozenset[int]:
        """
        Pins this throw actually removes from `standing`.
        """
        if self.is_foul:
            return frozenset()
        return self.knocked_pins & standing


@dataclass
class Frame:
    number: int
    throws: list[Throw] = field(default_factory=list)
    is_pocket_hit: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.number <= FRAMES_PER_GAME:
            raise InvalidStateError(f"frame number must be 1-10, got {self.number!r}")
        if len(self.throws) > self.max_throws:
            raise InvalidStateError(
                f"frame {self.number} holds at most {self.max_throws} throws, got {len(self.throws)}"
            )
        for idx, t in enumerate(self.throws):
            self._check_throw(idx, t)

    @property
    def is_tenth(self) -> bool:
        return self.number == FRAMES_PER_GAME

    @property
    def max_throws(self) -> int:
        return 3 if self.is_tenth else 2

    @property
    def is_strike(self) -> bool:
        return bool(self.throws) and self.throws[0].clears_rack

    @property
    def first_two_clear_rack(self) -> bool:
        """
        Strike on the first ball, or ten pins across the first two.
        """
        if self.is_strike:
            return True
        return len(self.throws) >= 2 and self.throws[0].pins + self.throws[1].pins >= 10

    @property
    def is_spare(self) -> bool:
        return (
            not self.is_strike
            and len(self.throws) >= 2
            and self.throws[0].pins + self.throws[1].pins == 10
        )

    @property
    def required_throws(self) -> int:
        """
        How many throws this frame needs before no more are expected, given
        what has been recorded so far.
        """
        if not self.is_tenth:
            return 1 if self.is_strike else 2
        return 3 if self.first_two_clear_rack else 2

    @property
    def is_finished(self) -> bool:
        return len(self.throws) >= self.required_throws

    def _check_throw(self, index: int, throw: Throw) -> None:
        """
        Reject a throw at `index` that the frame could not have had: one bowled
        after the frame was finished, or one knocking pins that were already down.
        """
        before = Frame(number=self.number, throws=self.throws[:index])
        if before.is_finished:
            raise InvalidStateError(f"frame {self.number} is finished after {index} throws")
        if throw.is_foul:
            return
        standing = standing_pins_before(before, index)
        if not throw.knocked_pins <= standing:
            down = sorted(throw.knocked_pins - standing)
            raise InvalidStateError(f"frame {self.number} throw {index + 1} knocks pins already down: {down}")

    def set_throw(self, index: int, throw: Throw) -> None:
        """
        Record `throw` at zero-based `index`, replacing it and dropping any
        throws recorded after it in this frame.
        """
        if not 0 <= index < self.max_throws:
            raise InvalidStateError(f"throw index {index} out of range for frame {self.number}")
        if index > len(self.throws):
            raise InvalidStateError(
                f"cannot record throw {index + 1} of frame {self.number} before throw {len(self.throws) + 1}"
            )
        self._check_throw(index, throw)
        self.throws = [*self.throws[:index], throw]


def empty_frames() -> list[Frame]:
    return [Frame(number=n) for n in range(1, FRAMES_PER_GAME + 1)]


def check_frames(frames: list[Frame]) -> list[Frame]:
    if len(frames) != FRAMES_PER_GAME:
        raise InvalidStateError(f"a game has exactly 10 frames, got {len(frames)}")
    return frames


def standing_pins_before(frame: Frame, throw_index: int) -> frozenset[int]:
    """
    Pins standing when throw `throw_index` (zero-based) of `frame` is bowled.

    Each frame starts on a full rack. Fouls knock nothing down. In the tenth
    frame the rack is reset after any throw that leaves it empty, so bonus
    balls after a strike or spare are bowled at ten pins.
    """
    if not 0 <= throw_index < frame.max_throws:
        raise InvalidStateError(f"throw index {throw_index} out of range for frame {frame.number}")

    standing = ALL_PINS
    for t in frame.throws[:throw_index]:
        standing = standing - t.credited(standing)
        if not standing and frame.is_tenth:
            standing = ALL_PINS
    return standing


def standing_pins_after(frame: Frame, throw_index: int) -> frozenset[int]:
    """
    Pins left standing once throw `throw_index` has been bowled. Throws not yet
    recorded leave a full rack.
    """
    if not 0 <= throw_index < len(frame.throws):
        return ALL_PINS
    before = standing_pins_before(frame, throw_index)
    return before - frame.throws[throw_index].credited(before)


@dataclass(frozen=True)
class SessionSetup:
    """
    Session attributes chosen before scoring starts. Stored on the game as-is;
    nothing in the engine interprets them.
    """

    game_type: str = "practice"
    oil_pattern: str = "house"
    lane_condition: str = "medium"
    lane_number: str | None = None
    hand_preference: str | None = None


GAME_TYPE_DISPLAY = {"practice": "Practice", "tournament": "Tournament"}
HAND_PREFERENCE_DISPLAY = {"left": "Left Handed", "right": "Right Handed"}
LANE_CONDITION_DISPLAY = {"oily": "Oily Lane", "dry": "Dry Lane", "medium": "Medium Oil"}
OIL_PATTERN_DISPLAY = {
    "house": "House Pattern",
    "sport": "Sport Pattern",
    "challenge": "Challenge Pattern",
}


def generate_game_id() -> str:
    return f"game_{uuid4().hex[:12]}"


@dataclass
class Game:
    id: str = field(default_factory=generate_game_id)
    frames: list[Frame] = field(default_factory=empty_frames)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_complete: bool = False
    setup: SessionSetup = field(default_factory=SessionSetup)

    def __post_init__(self) -> None:
        check_frames(self.frames)
        for idx, f in enumerate(self.frames, start=1):
            if f.number != idx:
                raise InvalidStateError(f"frame {idx} is numbered {f.number}")
        if self.is_complete and not self.frames[-1].is_finished:
            raise InvalidStateError("game marked complete before the tenth frame is finished")

    def frame(self, number: int) -> Frame:
        if not 1 <= number <= FRAMES_PER_GAME:
            raise InvalidStateError(f"frame number must be 1-10, got {number!r}")
        return self.frames[number - 1]


def make_throw(knocked: Iterable[int] = (), *, foul: bool = False) -> Throw:
    return Throw(knocked_pins=frozenset(knocked), is_foul=foul)
