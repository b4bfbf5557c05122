from __future__ import annotations

from dataclasses import dataclass

from app.bowling.game import Frame, Throw, standing_pins_after
from app.bowling.scoring import calculate_cumulative_scores
from app.bowling.splits import get_split_throw_indexes


STRIKE = "X"
SPARE = "/"
FOUL = "F"
MISS = "-"


def _count_symbol(t: Throw) -> str:
    if t.is_foul:
        return FOUL
    if not t.knocked_pins:
        return MISS
    return str(len(t.knocked_pins))


def _starts_rack(frame: Frame, idx: int) -> bool:
    if idx == 0:
        return True
    # Only the tenth frame re-racks mid-frame, after a ball clears the deck.
    return frame.is_tenth and not standing_pins_after(frame, idx - 1)


def _throw_symbol(frame: Frame, idx: int) -> str:
    t = frame.throws[idx]
    if t.is_foul:
        return FOUL
    if _starts_rack(frame, idx):
        return STRIKE if t.clears_rack else _count_symbol(t)

    # Second ball at a rack; a fouled first ball still leaves ten pins to spare.
    prev = frame.throws[idx - 1]
    if prev.pins + t.pins == 10:
        return SPARE
    return _count_symbol(t)


def get_frame_symbols(frame: Frame) -> list[str]:
    """
    Scoreboard marks for a frame: two boxes, three in the tenth.

    "X" strike, "/" spare, "F" foul, "-" miss, otherwise the pin count. A
    strike in frames 1-9 fills only the first box.
    """
    boxes = [""] * frame.max_throws
    for idx in range(min(len(frame.throws), frame.max_throws)):
        if idx > 0 and not frame.is_tenth and frame.is_strike:
            break
        boxes[idx] = _throw_symbol(frame, idx)
    return boxes


@dataclass(frozen=True)
class ScoreboardRow:
    number: int
    symbols: tuple[str, ...]
    cumulative: int | None
    split_throw_indexes: tuple[int, ...]
    is_pocket_hit: bool


def build_scoreboard(frames: list[Frame]) -> list[ScoreboardRow]:
    cumulative = calculate_cumulative_scores(frames)
    return [
        ScoreboardRow(
            number=f.number,
            symbols=tuple(get_frame_symbols(f)),
            cumulative=score,
            split_throw_indexes=tuple(get_split_throw_indexes(f)),
            is_pocket_hit=f.is_pocket_hit,
        )
        for f, score in zip(frames, cumulative)
    ]
