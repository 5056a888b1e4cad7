"""
DFA Editor API

FastAPI-based REST API for authoring DFA specifications.
Each editing session holds one DFA; every edit returns the regenerated
canonical document together with the validation result.

Security features:
  - Rate limiting via slowapi
  - Optional API key authentication (set API_KEY env var to enable)
"""

import os
import uuid
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import APIKeyHeader
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse, Response

from dfa_editor.config import get_settings
from dfa_editor.editor import DfaEditor
from dfa_editor.exceptions import (
    DfaEditorError,
    GenerationServiceError,
    MalformedDocument,
    ServiceUnavailable,
    SubmissionRefused,
)
from dfa_editor.logging_config import setup_logging
from dfa_editor.samples import sample_names
from dfa_editor.store import Mutation
from dfa_editor.submission import ApplicationMetaData, GenerationClient

log = structlog.get_logger()

VERSION = "1.0.0"
settings = get_settings()

# --- Rate Limiter ---
limiter = Limiter(key_func=get_remote_address)
EDIT_LIMIT = "300/minute"
SUBMIT_LIMIT = "10/minute"

# --- API Key Auth (optional) ---
API_KEY = os.environ.get("API_KEY")  # Set to enable auth; unset = disabled
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)):
    """Validate API key if API_KEY env var is set. No-op when unset."""
    if API_KEY is None:
        return
    if api_key != API_KEY:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "Invalid or missing API key",
                "error_type": "AuthenticationError",
                "hint": "Provide a valid X-API-Key header."
            }
        )


class SessionRegistry:
    """In-memory editing sessions, oldest evicted first when full."""

    def __init__(self, max_sessions: int):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, DfaEditor] = {}

    def create(self) -> str:
        if len(self._sessions) >= self.max_sessions:
            evicted = next(iter(self._sessions))
            del self._sessions[evicted]
            log.info("session_evicted", session_id=evicted)
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = DfaEditor(settings=settings)
        return session_id

    def get(self, session_id: str) -> Optional[DfaEditor]:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


# --- Lifespan Management ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(log_dir=settings.log_dir, log_level=settings.log_level)
    app.state.sessions = SessionRegistry(settings.max_sessions)
    app.state.generation_client = GenerationClient(
        settings.generation_service_url, timeout=settings.generation_timeout
    )
    log.info("editor_api_started", generation_service=settings.generation_service_url)

    yield

    log.info("editor_api_stopped", sessions=len(app.state.sessions))
    app.state.sessions = None


app = FastAPI(
    title="DFA Editor API",
    version=VERSION,
    description="Authoring and validation of Deterministic Finite Automaton specifications",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- CORS Configuration ---
ALLOWED_ORIGINS = os.environ.get(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000"
).split(",")

if os.environ.get("ENVIRONMENT") == "development":
    ALLOWED_ORIGINS = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error Handling ---

def error_status(exc: DfaEditorError) -> int:
    if isinstance(exc, SubmissionRefused):
        return 409
    if isinstance(exc, ServiceUnavailable):
        return 503
    if isinstance(exc, GenerationServiceError):
        return 502
    return 400


@app.exception_handler(DfaEditorError)
async def editor_error_handler(request: Request, exc: DfaEditorError):
    status_code = error_status(exc)
    log.warning("request_rejected", path=request.url.path, error_type=exc.error_type, status=status_code)
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"error": exc.message, "error_type": exc.error_type, "hint": exc.hint}},
    )


def not_found(what: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": f"{what} not found", "error_type": "NotFound", "hint": None},
    )


# --- Request/Response Models ---

class StateRequest(BaseModel):
    name: str
    description: str = ""


class SymbolRequest(BaseModel):
    symbol: str
    description: str = ""


class TransitionRequest(BaseModel):
    currentStateName: str = ""
    inputSymbol: str = ""
    subsequentStateName: str = ""
    description: str = ""


class StartStateRequest(BaseModel):
    name: str = ""


class AcceptStatesRequest(BaseModel):
    names: List[str] = Field(default_factory=list)


class DescriptionRequest(BaseModel):
    description: str = ""


class LoadRequest(BaseModel):
    document: str


class HealthResponse(BaseModel):
    status: str
    sessions: int
    version: str = VERSION


# --- Helper Functions ---

def get_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Session registry not initialized",
                "error_type": "ServiceUnavailable",
                "hint": "The API is starting up or shutting down."
            }
        )
    return registry


def get_editor(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> DfaEditor:
    editor = registry.get(session_id)
    if editor is None:
        raise not_found(f"Session {session_id}")
    return editor


def session_view(editor: DfaEditor, mutation: Optional[Mutation] = None) -> dict:
    snapshot = editor.snapshot()
    view = {
        "dfa": editor.to_dfa().to_document(),
        "check": snapshot.check.model_dump(),
        "message": snapshot.message,
        "dangling": [d.model_dump() for d in snapshot.dangling],
    }
    if mutation is not None:
        view["mutation"] = mutation.value
    return view


# --- API Endpoints ---

@app.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    registry = getattr(request.app.state, "sessions", None)
    return HealthResponse(
        status="healthy" if registry is not None else "degraded",
        sessions=len(registry) if registry is not None else 0,
    )


@app.get("/")
async def root():
    return {
        "name": "DFA Editor API",
        "version": VERSION,
        "description": "Author, validate and export DFA specifications",
        "endpoints": {
            "/health": "Health check (GET)",
            "/samples": "List sample DFAs (GET)",
            "/sessions": "Create an editing session (POST)",
            "/sessions/{id}/export": "Download the canonical DFA document (GET)",
            "/sessions/{id}/submit": "Create an application from the DFA (POST)",
        }
    }


@app.get("/samples")
async def list_samples():
    return {"samples": sample_names()}


@app.post("/sessions", status_code=201, dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def create_session(request: Request, registry: SessionRegistry = Depends(get_registry)):
    session_id = registry.create()
    log.info("session_created", session_id=session_id)
    return {"session_id": session_id, **session_view(registry.get(session_id))}


@app.get("/sessions/{session_id}", dependencies=[Depends(verify_api_key)])
async def get_session(editor: DfaEditor = Depends(get_editor)):
    return session_view(editor)


@app.delete("/sessions/{session_id}", status_code=204, dependencies=[Depends(verify_api_key)])
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    if not registry.delete(session_id):
        raise not_found(f"Session {session_id}")
    return Response(status_code=204)


# --- States ---

@app.put("/sessions/{session_id}/states", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def upsert_state(request: Request, body: StateRequest, editor: DfaEditor = Depends(get_editor)):
    mutation = editor.upsert_state(body.name, body.description)
    return session_view(editor, mutation)


@app.get("/sessions/{session_id}/states/{name:path}", dependencies=[Depends(verify_api_key)])
async def edit_state(name: str, editor: DfaEditor = Depends(get_editor)):
    state = editor.begin_edit_state(name)
    if state is None:
        raise not_found(f"State {name}")
    return state.to_document()


@app.delete("/sessions/{session_id}/states/{name:path}", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def remove_state(request: Request, name: str, editor: DfaEditor = Depends(get_editor)):
    if editor.remove_state(name) is None:
        raise not_found(f"State {name}")
    return session_view(editor, Mutation.REMOVED)


# --- Symbols ---

@app.put("/sessions/{session_id}/symbols", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def upsert_symbol(request: Request, body: SymbolRequest, editor: DfaEditor = Depends(get_editor)):
    mutation = editor.upsert_symbol(body.symbol, body.description)
    return session_view(editor, mutation)


@app.get("/sessions/{session_id}/symbols/{symbol:path}", dependencies=[Depends(verify_api_key)])
async def edit_symbol(symbol: str, editor: DfaEditor = Depends(get_editor)):
    entity = editor.begin_edit_symbol(symbol)
    if entity is None:
        raise not_found(f"Symbol {symbol}")
    return entity.to_document()


@app.delete("/sessions/{session_id}/symbols/{symbol:path}", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def remove_symbol(request: Request, symbol: str, editor: DfaEditor = Depends(get_editor)):
    if editor.remove_symbol(symbol) is None:
        raise not_found(f"Symbol {symbol}")
    return session_view(editor, Mutation.REMOVED)


# --- Transitions ---

@app.put("/sessions/{session_id}/transitions", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def upsert_transition(request: Request, body: TransitionRequest, editor: DfaEditor = Depends(get_editor)):
    mutation = editor.upsert_transition(
        body.currentStateName, body.inputSymbol, body.subsequentStateName, body.description
    )
    return session_view(editor, mutation)


@app.get("/sessions/{session_id}/transitions", dependencies=[Depends(verify_api_key)])
async def edit_transition(
    current_state: str = Query(..., alias="currentStateName"),
    input_symbol: str = Query(..., alias="inputSymbol"),
    editor: DfaEditor = Depends(get_editor),
):
    transition = editor.begin_edit_transition(current_state, input_symbol)
    if transition is None:
        raise not_found(f"Transition ({current_state}, {input_symbol})")
    return transition.to_document()


@app.delete("/sessions/{session_id}/transitions", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def remove_transition(
    request: Request,
    current_state: str = Query(..., alias="currentStateName"),
    input_symbol: str = Query(..., alias="inputSymbol"),
    editor: DfaEditor = Depends(get_editor),
):
    if editor.remove_transition(current_state, input_symbol) is None:
        raise not_found(f"Transition ({current_state}, {input_symbol})")
    return session_view(editor, Mutation.REMOVED)


# --- DFA level fields ---

@app.put("/sessions/{session_id}/start-state", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def set_start_state(request: Request, body: StartStateRequest, editor: DfaEditor = Depends(get_editor)):
    editor.set_start_state(body.name)
    return session_view(editor)


@app.put("/sessions/{session_id}/accept-states", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def set_accept_states(request: Request, body: AcceptStatesRequest, editor: DfaEditor = Depends(get_editor)):
    editor.set_accept_states(body.names)
    return session_view(editor)


@app.put("/sessions/{session_id}/description", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def set_description(request: Request, body: DescriptionRequest, editor: DfaEditor = Depends(get_editor)):
    editor.set_description(body.description)
    return session_view(editor)


@app.get("/sessions/{session_id}/suggestions", dependencies=[Depends(verify_api_key)])
async def suggestions(editor: DfaEditor = Depends(get_editor)):
    state = editor.suggest_state()
    symbol = editor.suggest_symbol()
    return {
        "state": state.to_document() if state else None,
        "symbol": symbol.to_document() if symbol else None,
    }


@app.get("/sessions/{session_id}/pickers", dependencies=[Depends(verify_api_key)])
async def pickers(editor: DfaEditor = Depends(get_editor)):
    return editor.index.as_dict()


@app.post("/sessions/{session_id}/clear", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def clear_session(request: Request, editor: DfaEditor = Depends(get_editor)):
    editor.clear()
    return session_view(editor)


@app.post("/sessions/{session_id}/reset", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def reset_session(request: Request, editor: DfaEditor = Depends(get_editor)):
    editor.reset()
    return session_view(editor)


# --- Documents ---

@app.post("/sessions/{session_id}/load", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def load_document(request: Request, body: LoadRequest, editor: DfaEditor = Depends(get_editor)):
    editor.load_json(body.document)
    return session_view(editor)


@app.post("/sessions/{session_id}/samples/{name}", dependencies=[Depends(verify_api_key)])
@limiter.limit(EDIT_LIMIT)
async def load_sample(request: Request, name: str, editor: DfaEditor = Depends(get_editor)):
    if name not in sample_names():
        raise not_found(f"Sample {name}")
    editor.load_sample(name)
    return session_view(editor)


@app.get("/sessions/{session_id}/export", dependencies=[Depends(verify_api_key)])
async def export_json(editor: DfaEditor = Depends(get_editor)):
    """Return the canonical document as a downloadable JSON file."""
    return Response(
        content=editor.to_json(),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=dfa_export.json"}
    )


@app.post("/sessions/{session_id}/submit", dependencies=[Depends(verify_api_key)])
@limiter.limit(SUBMIT_LIMIT)
async def submit(request: Request, metadata: ApplicationMetaData, editor: DfaEditor = Depends(get_editor)):
    """
    Create an application from the session's DFA.

    Returns:
        - 200: zip archive of the generated application
        - 409: DFA does not validate; nothing was sent
        - 502: generation service answered with an error
        - 503: generation service unreachable
    """
    client: GenerationClient = request.app.state.generation_client
    generated = await client.create_app(editor.to_dfa(), metadata)
    return Response(
        content=generated.content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{generated.file_name}"'}
    )


if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "8000"))

    uvicorn.run(app, host=host, port=port)
