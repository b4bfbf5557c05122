from __future__ import annotations

from app.bowling.game import Frame, standing_pins_after, standing_pins_before
from app.bowling.pins import ALL_PINS, HEAD_PIN, clusters


def is_split_leave(frame: Frame, throw_index: int) -> bool:
    """
    True if the throw at `throw_index` left a split.

    A split is only possible on a ball bowled at a full rack (the first ball of
    a frame, or a tenth-frame ball after the rack was reset). It needs the head
    pin down, at least two pins standing, and the standing pins falling into
    two or more clusters that do not touch.

    Any index is accepted; unrecorded throws, fouls, and clean racks are never
    splits.
    """
    if not 0 <= throw_index < len(frame.throws):
        return False

    t = frame.throws[throw_index]
    if t.is_foul or not t.knocked_pins:
        return False
    if standing_pins_before(frame, throw_index) != ALL_PINS:
        return False

    leave = standing_pins_after(frame, throw_index)
    if len(leave) < 2 or HEAD_PIN in leave:
        return False
    return len(clusters(leave)) > 1


def get_split_throw_indexes(frame: Frame) -> list[int]:
    return [i for i in range(len(frame.throws)) if is_split_leave(frame, i)]
