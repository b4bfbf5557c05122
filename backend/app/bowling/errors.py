from __future__ import annotations


class InvalidStateError(ValueError):
    """
    Raised when the engine is handed input it can never score correctly:
    a pin outside 1-10, a frame number outside 1-10, or more throws than a
    frame can hold.

    Illegal player actions (tapping a fallen pin, undoing past the start) are
    not errors; the turn state machine treats those as no-ops.
    """
