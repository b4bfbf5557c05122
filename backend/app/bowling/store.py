from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any

from app.bowling.game import Frame, Game, SessionSetup, Throw
from app.bowling.scoring import calculate_total_score
from app.bowling.turns import ScoringSession
from app.config import DEFAULT_HAND_PREFERENCE, GAMES_PATH


logger = logging.getLogger(__name__)

HAND_PREFERENCES = ("left", "right")


@dataclass(frozen=True)
class GameSettings:
    default_hand_preference: str = "right"
    has_set_hand_preference: bool = False


# --- Serialization (JSON-compatible dicts) ---
def throw_to_data(t: Throw) -> dict[str, Any]:
    return {"knocked_pins": sorted(t.knocked_pins), "is_foul": t.is_foul}


def throw_from_data(data: dict[str, Any]) -> Throw:
    return Throw(knocked_pins=frozenset(data.get("knocked_pins", ())), is_foul=bool(data.get("is_foul", False)))


def frame_to_data(f: Frame) -> dict[str, Any]:
    return {
        "number": f.number,
        "throws": [throw_to_data(t) for t in f.throws],
        "is_pocket_hit": f.is_pocket_hit,
    }


def frame_from_data(data: dict[str, Any]) -> Frame:
    return Frame(
        number=int(data["number"]),
        throws=[throw_from_data(t) for t in data.get("throws", ())],
        is_pocket_hit=bool(data.get("is_pocket_hit", False)),
    )


def game_to_data(g: Game) -> dict[str, Any]:
    return {
        "id": g.id,
        "frames": [frame_to_data(f) for f in g.frames],
        "total_score": calculate_total_score(g.frames),
        "created_at": g.created_at.isoformat(),
        "is_complete": g.is_complete,
        "setup": asdict(g.setup),
    }


def game_from_data(data: dict[str, Any]) -> Game:
    return Game(
        id=str(data["id"]),
        frames=[frame_from_data(f) for f in data["frames"]],
        created_at=datetime.fromisoformat(data["created_at"]),
        is_complete=bool(data.get("is_complete", False)),
        setup=SessionSetup(**data.get("setup", {})),
    )


class InMemoryGameStore:
    """
    Saved games, bowler settings, and the scoring sessions currently in
    progress. Saved games are deep copies; later edits to a live game do not
    reach the store until it is saved again.
    """

    def __init__(self, *, default_hand_preference: str = "right") -> None:
        self._lock = RLock()
        self._games: dict[str, Game] = {}
        self._default_hand_preference = default_hand_preference
        self._settings = GameSettings(default_hand_preference=default_hand_preference)
        self._sessions: dict[str, ScoringSession] = {}

    def clear(self) -> None:
        with self._lock:
            self._games.clear()
            self._sessions.clear()
            self._settings = GameSettings(default_hand_preference=self._default_hand_preference)
            self._persist()

    # --- Games ---
    def save(self, game: Game) -> None:
        with self._lock:
            self._games[game.id] = copy.deepcopy(game)
            self._persist()
        logger.info("saved game %s (complete=%s)", game.id, game.is_complete)

    def list_games(self) -> list[Game]:
        """
        Newest first.
        """
        with self._lock:
            games = [copy.deepcopy(g) for g in self._games.values()]
        return sorted(games, key=lambda g: g.created_at, reverse=True)

    def get_game(self, game_id: str) -> Game | None:
        with self._lock:
            g = self._games.get(game_id)
            return copy.deepcopy(g) if g is not None else None

    def delete_game(self, game_id: str) -> bool:
        with self._lock:
            existed = self._games.pop(game_id, None) is not None
            if existed:
                self._persist()
        if existed:
            logger.info("deleted game %s", game_id)
        return existed

    # --- Settings ---
    def get_settings(self) -> GameSettings:
        with self._lock:
            return self._settings

    def set_default_hand_preference(self, preference: str) -> GameSettings:
        if preference not in HAND_PREFERENCES:
            raise ValueError("hand preference must be 'left' or 'right'")
        with self._lock:
            self._settings = GameSettings(default_hand_preference=preference, has_set_hand_preference=True)
            self._persist()
            return self._settings

    # --- Live scoring sessions ---
    def start_session(self, setup: SessionSetup | None = None) -> ScoringSession:
        setup = setup or SessionSetup()
        if setup.hand_preference is None:
            setup = replace(setup, hand_preference=self.get_settings().default_hand_preference)
        session = ScoringSession.start(setup, sink=self)
        with self._lock:
            self._sessions[session.game.id] = session
        return session

    def get_session(self, game_id: str) -> ScoringSession | None:
        with self._lock:
            return self._sessions.get(game_id)

    def end_session(self, game_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(game_id, None) is not None

    def _persist(self) -> None:
        """
        Hook for durable stores; called with the lock held after every write.
        """


class JsonFileGameStore(InMemoryGameStore):
    """
    Same as InMemoryGameStore, with games and settings mirrored to a JSON file.
    """

    def __init__(self, path: str | Path, *, default_hand_preference: str = "right") -> None:
        self._path = Path(path)
        super().__init__(default_hand_preference=default_hand_preference)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            games = [game_from_data(g) for g in raw.get("games", [])]
            settings = GameSettings(**raw.get("settings", asdict(self._settings)))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("failed to load games from %s: %s", self._path, e)
            return
        with self._lock:
            self._games = {g.id: g for g in games}
            self._settings = settings
        logger.info("loaded %d games from %s", len(games), self._path)

    def _persist(self) -> None:
        payload = {
            "games": [game_to_data(g) for g in self._games.values()],
            "settings": asdict(self._settings),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self._path)


_STORE: InMemoryGameStore | None = None


def get_store() -> InMemoryGameStore:
    global _STORE
    if _STORE is None:
        if GAMES_PATH:
            _STORE = JsonFileGameStore(GAMES_PATH, default_hand_preference=DEFAULT_HAND_PREFERENCE)
        else:
            _STORE = InMemoryGameStore(default_hand_preference=DEFAULT_HAND_PREFERENCE)
    return _STORE
