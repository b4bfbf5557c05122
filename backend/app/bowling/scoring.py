from __future__ import annotations

from app.bowling.game import FRAMES_PER_GAME, Frame, check_frames


def _throws_after(frames: list[Frame], frame_idx: int, count: int) -> list[int] | None:
    """
    Pin counts of the next `count` throws bowled after frame `frame_idx`,
    or None if they have not all been bowled yet.
    """
    out: list[int] = []
    for f in frames[frame_idx + 1 :]:
        for t in f.throws:
            out.append(t.pins)
            if len(out) == count:
                return out
    return None


def frame_value(frames: list[Frame], frame_idx: int) -> int | None:
    """
    Points earned by a single frame, including strike/spare bonus, or None if
    the frame cannot be valued yet.
    """
    frame = frames[frame_idx]
    throws = frame.throws
    if not throws:
        return None

    if frame.is_tenth:
        # The bonus balls live inside the tenth frame itself.
        if not frame.is_finished:
            return None
        return sum(t.pins for t in throws[: frame.required_throws])

    if frame.is_strike:
        bonus = _throws_after(frames, frame_idx, 2)
        return None if bonus is None else 10 + sum(bonus)

    if len(throws) < 2:
        return None

    if frame.is_spare:
        bonus = _throws_after(frames, frame_idx, 1)
        return None if bonus is None else 10 + bonus[0]

    return throws[0].pins + throws[1].pins


def calculate_cumulative_scores(frames: list[Frame]) -> list[int | None]:
    """
    Running total through each frame. An entry is None when that frame, or any
    frame before it, is still waiting on throws.
    """
    check_frames(frames)
    scores: list[int | None] = []
    running: int | None = 0
    for idx in range(FRAMES_PER_GAME):
        value = frame_value(frames, idx) if running is not None else None
        running = None if value is None else running + value
        scores.append(running)
    return scores


def calculate_total_score(frames: list[Frame]) -> int:
    present = [s for s in calculate_cumulative_scores(frames) if s is not None]
    return present[-1] if present else 0


def is_game_complete(frames: list[Frame]) -> bool:
    check_frames(frames)
    return frames[-1].is_finished
