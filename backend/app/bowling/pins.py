from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from app.bowling.errors import InvalidStateError


# Standard ten-pin rack, head pin first. Row 0 faces the bowler.
RACK_ROWS: tuple[tuple[int, ...], ...] = (
    (1,),
    (2, 3),
    (4, 5, 6),
    (7, 8, 9, 10),
)

HEAD_PIN = 1
ALL_PINS: frozenset[int] = frozenset(range(1, 11))

# Units are pin spacings; rows sit sqrt(3)/2 apart on the equilateral rack.
ROW_GAP = math.sqrt(3) / 2.0


def validate_pin(pin: int) -> int:
    if pin not in ALL_PINS:
        raise InvalidStateError(f"pin must be 1-10, got {pin!r}")
    return pin


def _build_positions() -> dict[int, tuple[float, float]]:
    positions: dict[int, tuple[float, float]] = {}
    for row_idx, row in enumerate(RACK_ROWS):
        offset = (len(row) - 1) / 2.0
        for col_idx, pin in enumerate(row):
            positions[pin] = (col_idx - offset, row_idx * ROW_GAP)
    return positions


PIN_POSITIONS: dict[int, tuple[float, float]] = _build_positions()

PIN_ROW: dict[int, int] = {pin: r for r, row in enumerate(RACK_ROWS) for pin in row}


def _build_adjacency() -> tuple[dict[int, frozenset[int]], dict[int, frozenset[int]]]:
    """
    Derive (lateral, forward) adjacency from rack coordinates.

    Two pins touch when they are exactly one spacing apart. A touching pin in
    the same row is a lateral neighbor; one in the row nearer the head pin is
    a forward neighbor (5 -> {2, 3}, 8 -> {4, 5}, 7 -> {4}).
    """
    pins = sorted(PIN_POSITIONS)
    coords = np.array([PIN_POSITIONS[p] for p in pins], dtype=float)
    dist = np.linalg.norm(coords[:, None, :] - coords[None, :, :], axis=-1)
    touching = np.isclose(dist, 1.0)

    lateral: dict[int, set[int]] = {p: set() for p in pins}
    forward: dict[int, set[int]] = {p: set() for p in pins}
    for i, j in zip(*np.nonzero(touching)):
        a, b = pins[int(i)], pins[int(j)]
        if PIN_ROW[a] == PIN_ROW[b]:
            lateral[a].add(b)
        elif PIN_ROW[b] == PIN_ROW[a] - 1:
            forward[a].add(b)
    return (
        {p: frozenset(s) for p, s in lateral.items()},
        {p: frozenset(s) for p, s in forward.items()},
    )


LATERAL_NEIGHBORS, FORWARD_NEIGHBORS = _build_adjacency()


def forward_neighbors(pin: int) -> frozenset[int]:
    return FORWARD_NEIGHBORS[validate_pin(pin)]


def neighbors(pin: int) -> frozenset[int]:
    """
    All pins touching `pin`: lateral, forward, and the pins behind it that
    count `pin` as a forward neighbor.
    """
    validate_pin(pin)
    behind = frozenset(p for p, fwd in FORWARD_NEIGHBORS.items() if pin in fwd)
    return LATERAL_NEIGHBORS[pin] | FORWARD_NEIGHBORS[pin] | behind


def clusters(standing: Iterable[int]) -> list[frozenset[int]]:
    """
    Group standing pins into connected clusters over the touching graph.
    Clusters are returned ordered by their lowest pin.
    """
    remaining = {validate_pin(p) for p in standing}
    out: list[frozenset[int]] = []
    while remaining:
        seed = min(remaining)
        group = {seed}
        frontier = [seed]
        while frontier:
            current = frontier.pop()
            for n in neighbors(current):
                if n in remaining and n not in group:
                    group.add(n)
                    frontier.append(n)
        remaining -= group
        out.append(frozenset(group))
    return out


def format_leave(pins: Iterable[int]) -> str:
    """
    Render a leave the way bowlers call it, e.g. {10, 7} -> "7-10".
    """
    ordered = sorted(validate_pin(p) for p in pins)
    return "-".join(str(p) for p in ordered)
