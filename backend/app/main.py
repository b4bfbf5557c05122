import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from app.bowling.errors import InvalidStateError
from app.bowling.game import (
    GAME_TYPE_DISPLAY,
    HAND_PREFERENCE_DISPLAY,
    LANE_CONDITION_DISPLAY,
    OIL_PATTERN_DISPLAY,
    Game,
    SessionSetup,
)
from app.bowling.scoring import calculate_total_score
from app.bowling.stats import CollectionStats, GameStats, calculate_collection_stats, calculate_stats
from app.bowling.store import get_store
from app.bowling.symbols import ScoreboardRow, build_scoreboard
from app.bowling.turns import ScoringSession
from app.config import LOG_LEVEL

logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logging.getLogger("app").setLevel(LOG_LEVEL)

app = FastAPI(title="Bowling Scorekeeper")
store = get_store()


@app.get("/", include_in_schema=False)
def root(request: Request):
    # If a browser hits the root, take them to Swagger UI.
    # Keep the JSON response for API clients (e.g. curl, fetch).
    accept = (request.headers.get("accept") or "").lower()
    if "text/html" in accept:
        return RedirectResponse(url="/docs")
    return {
        "name": "Bowling Scorekeeper",
        "docs": "/docs",
        "health": "/health",
        "endpoints": [
            "POST /sessions",
            "GET /sessions/{game_id}",
            "POST /sessions/{game_id}/pins/{pin}",
            "POST /sessions/{game_id}/foul-toggle",
            "POST /sessions/{game_id}/next",
            "POST /sessions/{game_id}/miss",
            "POST /sessions/{game_id}/foul",
            "POST /sessions/{game_id}/strike-or-spare",
            "POST /sessions/{game_id}/undo",
            "PUT /sessions/{game_id}/frames/{number}/pocket",
            "POST /sessions/{game_id}/save",
            "GET /games",
            "GET /games/stats",
            "GET /games/{game_id}",
            "GET /games/{game_id}/stats",
            "DELETE /games/{game_id}",
            "GET /settings",
            "PUT /settings/hand",
        ],
    }


@app.get("/health")
def health():
    return {"status": "ok"}


class SessionSetupRequest(BaseModel):
    game_type: str = Field(default="practice", description="practice | tournament")
    oil_pattern: str = Field(default="house", description="house | sport | challenge")
    lane_condition: str = Field(default="medium", description="oily | dry | medium")
    lane_number: str | None = Field(default=None)
    hand_preference: str | None = Field(
        default=None, description="left | right; defaults to the saved preference"
    )


class PocketRequest(BaseModel):
    is_pocket_hit: bool = True


class HandPreferenceRequest(BaseModel):
    hand_preference: str = Field(..., description="left | right")


class ScoreboardRowDTO(BaseModel):
    number: int
    symbols: list[str]
    cumulative: int | None
    split_throw_indexes: list[int]
    is_pocket_hit: bool


class SessionStateDTO(BaseModel):
    game_id: str
    frame: int
    throw: int
    knocked_pins: list[int]
    is_foul: bool
    is_complete: bool
    can_undo: bool
    standing_pins: list[int]
    visually_standing_pins: list[int]
    strike_or_spare_label: str
    scoreboard: list[ScoreboardRowDTO]
    total_score: int


class GameDTO(BaseModel):
    id: str
    created_at: str
    is_complete: bool
    total_score: int
    game_type: str
    oil_pattern: str
    lane_condition: str
    lane_number: str | None
    hand_preference: str | None
    display_names: dict[str, str]
    scoreboard: list[ScoreboardRowDTO]


class GameStatsDTO(BaseModel):
    strikes: int
    spares: int
    splits: int
    split_conversions: int
    open_frames: int
    completed_frames: int
    average_first_ball_pins: float
    pocket_hits: int
    total_pocket_opportunities: int
    strike_percentage: float
    spare_percentage: float
    split_conversion_rate: float
    pocket_hit_rate: float


class CollectionStatsDTO(BaseModel):
    total_games: int
    average_score: int
    high_game: int
    low_game: int
    total_strikes: int
    total_spares: int
    perfect_games: int


class SettingsDTO(BaseModel):
    default_hand_preference: str
    has_set_hand_preference: bool


def _rows_to_dto(rows: list[ScoreboardRow]) -> list[ScoreboardRowDTO]:
    return [
        ScoreboardRowDTO(
            number=r.number,
            symbols=list(r.symbols),
            cumulative=r.cumulative,
            split_throw_indexes=list(r.split_throw_indexes),
            is_pocket_hit=r.is_pocket_hit,
        )
        for r in rows
    ]


def _session_to_dto(session: ScoringSession) -> SessionStateDTO:
    s = session.state()
    return SessionStateDTO(
        game_id=session.game.id,
        frame=s.frame,
        throw=s.throw,
        knocked_pins=sorted(s.knocked_pins),
        is_foul=s.is_foul,
        is_complete=s.is_complete,
        can_undo=s.can_undo,
        standing_pins=sorted(session.standing_pins()),
        visually_standing_pins=sorted(session.visually_standing_pins()),
        strike_or_spare_label=session.strike_or_spare_label,
        scoreboard=_rows_to_dto(build_scoreboard(session.game.frames)),
        total_score=session.total_score(),
    )


def _display_names(setup: SessionSetup) -> dict[str, str]:
    names = {
        "game_type": GAME_TYPE_DISPLAY.get(setup.game_type, setup.game_type),
        "oil_pattern": OIL_PATTERN_DISPLAY.get(setup.oil_pattern, setup.oil_pattern),
        "lane_condition": LANE_CONDITION_DISPLAY.get(setup.lane_condition, setup.lane_condition),
    }
    if setup.hand_preference:
        names["hand_preference"] = HAND_PREFERENCE_DISPLAY.get(setup.hand_preference, setup.hand_preference)
    return names


def _game_to_dto(g: Game) -> GameDTO:
    return GameDTO(
        id=g.id,
        created_at=g.created_at.isoformat(),
        is_complete=g.is_complete,
        total_score=calculate_total_score(g.frames),
        game_type=g.setup.game_type,
        oil_pattern=g.setup.oil_pattern,
        lane_condition=g.setup.lane_condition,
        lane_number=g.setup.lane_number,
        hand_preference=g.setup.hand_preference,
        display_names=_display_names(g.setup),
        scoreboard=_rows_to_dto(build_scoreboard(g.frames)),
    )


def _game_stats_to_dto(st: GameStats) -> GameStatsDTO:
    return GameStatsDTO(
        strikes=st.strikes,
        spares=st.spares,
        splits=st.splits,
        split_conversions=st.split_conversions,
        open_frames=st.open_frames,
        completed_frames=st.completed_frames,
        average_first_ball_pins=st.average_first_ball_pins,
        pocket_hits=st.pocket_hits,
        total_pocket_opportunities=st.total_pocket_opportunities,
        strike_percentage=st.strike_percentage,
        spare_percentage=st.spare_percentage,
        split_conversion_rate=st.split_conversion_rate,
        pocket_hit_rate=st.pocket_hit_rate,
    )


def _session(game_id: str) -> ScoringSession:
    session = store.get_session(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="scoring session not found")
    return session


def _saved_game(game_id: str) -> Game:
    game = store.get_game(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


# --- Live scoring ---
@app.post("/sessions", response_model=SessionStateDTO)
def start_session(req: SessionSetupRequest) -> SessionStateDTO:
    session = store.start_session(
        SessionSetup(
            game_type=req.game_type,
            oil_pattern=req.oil_pattern,
            lane_condition=req.lane_condition,
            lane_number=req.lane_number,
            hand_preference=req.hand_preference,
        )
    )
    return _session_to_dto(session)


@app.get("/sessions/{game_id}", response_model=SessionStateDTO)
def get_session_state(game_id: str) -> SessionStateDTO:
    return _session_to_dto(_session(game_id))


@app.post("/sessions/{game_id}/pins/{pin}", response_model=SessionStateDTO)
def toggle_pin(game_id: str, pin: int) -> SessionStateDTO:
    session = _session(game_id)
    try:
        session.toggle_pin(pin)
    except InvalidStateError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/foul-toggle", response_model=SessionStateDTO)
def toggle_foul(game_id: str) -> SessionStateDTO:
    session = _session(game_id)
    session.toggle_foul()
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/next", response_model=SessionStateDTO)
def next_throw(game_id: str) -> SessionStateDTO:
    session = _session(game_id)
    session.next_throw()
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/miss", response_model=SessionStateDTO)
def declare_miss(game_id: str) -> SessionStateDTO:
    session = _session(game_id)
    session.declare_miss()
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/foul", response_model=SessionStateDTO)
def declare_foul(game_id: str) -> SessionStateDTO:
    session = _session(game_id)
    session.declare_foul()
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/strike-or-spare", response_model=SessionStateDTO)
def declare_strike_or_spare(game_id: str) -> SessionStateDTO:
    session = _session(game_id)
    session.declare_strike_or_spare()
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/undo", response_model=SessionStateDTO)
def undo_throw(game_id: str) -> SessionStateDTO:
    session = _session(game_id)
    session.undo()
    return _session_to_dto(session)


@app.put("/sessions/{game_id}/frames/{number}/pocket", response_model=SessionStateDTO)
def set_pocket_hit(game_id: str, number: int, req: PocketRequest) -> SessionStateDTO:
    session = _session(game_id)
    try:
        session.set_pocket_hit(number, req.is_pocket_hit)
    except InvalidStateError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return _session_to_dto(session)


@app.post("/sessions/{game_id}/save", response_model=SessionStateDTO)
def save_session(game_id: str) -> SessionStateDTO:
    # Saves in-progress games too; completed games are saved automatically.
    session = _session(game_id)
    store.save(session.game)
    return _session_to_dto(session)


# --- Saved games ---
@app.get("/games", response_model=list[GameDTO])
def list_games() -> list[GameDTO]:
    return [_game_to_dto(g) for g in store.list_games()]


@app.get("/games/stats", response_model=CollectionStatsDTO)
def collection_stats() -> CollectionStatsDTO:
    st: CollectionStats = calculate_collection_stats(store.list_games())
    return CollectionStatsDTO(
        total_games=st.total_games,
        average_score=st.average_score,
        high_game=st.high_game,
        low_game=st.low_game,
        total_strikes=st.total_strikes,
        total_spares=st.total_spares,
        perfect_games=st.perfect_games,
    )


@app.get("/games/{game_id}", response_model=GameDTO)
def get_game(game_id: str) -> GameDTO:
    return _game_to_dto(_saved_game(game_id))


@app.get("/games/{game_id}/stats", response_model=GameStatsDTO)
def game_stats(game_id: str) -> GameStatsDTO:
    return _game_stats_to_dto(calculate_stats(_saved_game(game_id).frames))


@app.delete("/games/{game_id}")
def delete_game(game_id: str) -> dict:
    existed = store.delete_game(game_id)
    store.end_session(game_id)
    return {"deleted": existed}


# --- Settings ---
@app.get("/settings", response_model=SettingsDTO)
def get_settings() -> SettingsDTO:
    s = store.get_settings()
    return SettingsDTO(
        default_hand_preference=s.default_hand_preference,
        has_set_hand_preference=s.has_set_hand_preference,
    )


@app.put("/settings/hand", response_model=SettingsDTO)
def set_hand_preference(req: HandPreferenceRequest) -> SettingsDTO:
    try:
        s = store.set_default_hand_preference(req.hand_preference)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return SettingsDTO(
        default_hand_preference=s.default_hand_preference,
        has_set_hand_preference=s.has_set_hand_preference,
    )
