from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from app.bowling.game import PERFECT_GAME, Frame, Game, standing_pins_before
from app.bowling.pins import ALL_PINS
from app.bowling.scoring import calculate_total_score
from app.bowling.splits import is_split_leave


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def _pct(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return (part / whole) * 100.0


@dataclass(frozen=True)
class GameStats:
    strikes: int
    spares: int
    splits: int
    split_conversions: int
    open_frames: int
    completed_frames: int
    average_first_ball_pins: float
    pocket_hits: int
    total_pocket_opportunities: int
    strike_opportunities: int
    bonus_ball_strikes: int = 0

    @property
    def strike_percentage(self) -> float:
        return _pct(self.strikes, self.strike_opportunities)

    @property
    def spare_percentage(self) -> float:
        # Frames that opened with a strike have no spare chance.
        first_ball_strikes = self.strikes - self.bonus_ball_strikes
        return _pct(self.spares, self.completed_frames - first_ball_strikes)

    @property
    def split_conversion_rate(self) -> float:
        return _pct(self.split_conversions, self.splits)

    @property
    def pocket_hit_rate(self) -> float:
        return _pct(self.pocket_hits, self.total_pocket_opportunities)


def _tenth_frame_bonus_strikes(frame: Frame) -> tuple[int, int]:
    """
    (strikes, chances) for the tenth-frame balls after the first that were
    bowled at a fresh rack: the second ball after a strike, the third after a
    strike or spare.
    """
    strikes = 0
    chances = 0
    for idx in range(1, len(frame.throws)):
        if idx == 1 and not frame.is_strike:
            continue
        if standing_pins_before(frame, idx) != ALL_PINS:
            continue
        chances += 1
        if frame.throws[idx].clears_rack:
            strikes += 1
    return strikes, chances


def calculate_stats(frames: Iterable[Frame]) -> GameStats:
    """
    Single pass over the frames of one game.

    Frames with no throws are skipped. A frame counts once as a strike, a
    spare, or an open frame (open frames only in 1-9); a split leave on the
    first ball is counted, and converted if the frame was spared. Tenth-frame
    strikes on the bonus balls are added on top.
    """
    strikes = 0
    bonus_strikes = 0
    bonus_chances = 0
    spares = 0
    splits = 0
    split_conversions = 0
    open_frames = 0
    completed_frames = 0
    first_ball_pins = 0
    pocket_hits = 0

    for frame in frames:
        if not frame.throws:
            continue

        completed_frames += 1
        first = frame.throws[0]
        first_ball_pins += first.pins
        if frame.is_pocket_hit:
            pocket_hits += 1

        if frame.is_tenth:
            s, c = _tenth_frame_bonus_strikes(frame)
            bonus_strikes += s
            bonus_chances += c

        if frame.is_strike:
            strikes += 1
            continue

        split = is_split_leave(frame, 0)
        if split:
            splits += 1

        if len(frame.throws) >= 2:
            second = frame.throws[1]
            if not first.is_foul and not second.is_foul and first.pins + second.pins == 10:
                spares += 1
                if split:
                    split_conversions += 1
            elif not frame.is_tenth:
                open_frames += 1

    return GameStats(
        strikes=strikes + bonus_strikes,
        spares=spares,
        splits=splits,
        split_conversions=split_conversions,
        open_frames=open_frames,
        completed_frames=completed_frames,
        average_first_ball_pins=(
            _round_half_up(first_ball_pins / completed_frames, 1) if completed_frames else 0.0
        ),
        pocket_hits=pocket_hits,
        total_pocket_opportunities=completed_frames,
        strike_opportunities=completed_frames + bonus_chances,
        bonus_ball_strikes=bonus_strikes,
    )


@dataclass(frozen=True)
class CollectionStats:
    total_games: int
    average_score: int
    high_game: int
    low_game: int
    total_strikes: int
    total_spares: int
    perfect_games: int


def calculate_collection_stats(games: Iterable[Game]) -> CollectionStats:
    """
    Reductions over saved games. Only complete games count; none yields zeros.
    """
    complete = [g for g in games if g.is_complete]
    if not complete:
        return CollectionStats(0, 0, 0, 0, 0, 0, 0)

    scores = [calculate_total_score(g.frames) for g in complete]
    per_game = [calculate_stats(g.frames) for g in complete]
    return CollectionStats(
        total_games=len(complete),
        average_score=int(_round_half_up(sum(scores) / len(scores))),
        high_game=max(scores),
        low_game=min(scores),
        total_strikes=sum(s.strikes for s in per_game),
        total_spares=sum(s.spares for s in per_game),
        perfect_games=sum(1 for s in scores if s == PERFECT_GAME),
    )
