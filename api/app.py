import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from engine.errors import GameError, UnknownLocation, UnknownUnit
from engine.model import State
from runtime.channel import ResetChannel
from runtime.config import AppConfig, config_from_env
from runtime.session import GameSession, open_session
from .schemas import AssignIn, EventsResponse, ResultOut, SelectIn, StartRequest

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
log = logging.getLogger("falcone.api")

app = FastAPI(title="Finding Falcone API")
config: AppConfig = config_from_env()
reset_channel = ResetChannel()
session: GameSession | None = None

# Enable CORS for development (front end runs on a different port)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:4200", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    """Rule violations are player errors, never server errors."""
    status = 404 if isinstance(exc, (UnknownLocation, UnknownUnit)) else 409
    return JSONResponse(status_code=status, content={"detail": exc.message, "error": type(exc).__name__})

def _session() -> GameSession:
    if session is None:
        raise HTTPException(400, "Game not started")
    return session

def _state_dict(s: State) -> dict:
    return {
        "session_id": s.session_id,
        "selected_count": s.selected_count,
        "assigned_count": s.assigned_count,
        "elapsed_time": s.elapsed_time,
        "locations": [
            {
                "name": loc.name,
                "distance": loc.distance,
                "is_selected": loc.is_selected,
                "assigned_unit": loc.assigned_unit.id if loc.assigned_unit else None,
            } for loc in s.locations.values()
        ],
        "units": [
            {
                "id": u.id, "name": u.name, "max_distance": u.max_distance,
                "speed": u.speed, "is_available": u.is_available,
            } for u in s.units.values()
        ],
    }

def _event_dicts(evts) -> list[dict]:
    return [{"kind": e.kind, "seq": e.seq, "data": e.data} for e in evts]

@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "message": "Finding Falcone API",
        "docs": "/docs",
        "version": "1.0"
    }

@app.on_event("startup")
async def startup():
    """Open a session with the configured seed on app startup."""
    global session
    session = await open_session(config, reset_channel=reset_channel)

@app.on_event("shutdown")
async def shutdown():
    """Close the current session."""
    global session
    if session is not None:
        await session.stop()

@app.post("/game/start")
async def start_game(req: StartRequest):
    """Start a new game, replacing the current one."""
    global session
    new_session = await open_session(config, reset_channel=reset_channel, seed=req.seed)
    old, session = session, new_session
    if old is not None:
        await old.stop()
    return {"session_id": session.engine.state.session_id}

@app.get("/game/local/state")
async def get_state():
    """Get current game state snapshot."""
    s = await _session().snapshot()
    return _state_dict(s)

@app.post("/game/local/select")
async def select_location(body: SelectIn):
    """Toggle selection of a location."""
    evts = await _session().select(body.location)
    log.info(f"Toggled {body.location}")
    return {"events": _event_dicts(evts)}

@app.post("/game/local/assign")
async def assign_unit(body: AssignIn):
    """Bind a unit to a selected location."""
    evts = await _session().assign(body.location, body.unit_id)
    return {"events": _event_dicts(evts)}

@app.post("/game/local/unassign")
async def unassign_unit(body: SelectIn):
    """Free the unit bound to a location."""
    evts = await _session().unassign(body.location)
    return {"events": _event_dicts(evts)}

@app.post("/game/local/search", response_model=ResultOut, response_model_exclude_none=True)
async def search():
    """Resolve the search for the current selection."""
    result = await _session().search()
    if result is None:
        raise HTTPException(409, "Search abandoned: the game was reset")
    return ResultOut(**result.to_dict())

@app.get("/game/local/result", response_model=ResultOut, response_model_exclude_none=True)
async def get_result():
    """Get the last presented search result."""
    result = getattr(_session().presenter, "result", None)
    if result is None:
        raise HTTPException(404, "No search has been resolved yet")
    return ResultOut(**result.to_dict())

@app.post("/game/local/reset")
async def reset_game():
    """Broadcast a reset to every subscribed session."""
    _session()
    delivered = reset_channel.publish()
    return {"reset": delivered}

@app.get("/game/local/events")
async def get_events(since: int = 0, limit: int = 500, kind: str | None = None):
    """Get events since offset."""
    evts, next_offset = _session().events.since(since, limit, kind=kind)
    return EventsResponse(next_offset=next_offset, events=_event_dicts(evts))

@app.get("/game/local/notices")
async def get_notices():
    """Get recent messages shown to the player."""
    return {"notices": list(getattr(_session().notifier, "notices", []))}
