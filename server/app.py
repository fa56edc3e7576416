"""FastAPI server exposing answer-input sessions."""

import logging
import uuid

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from engine.config import CONTENT_TIMEOUT_SECONDS, DEFAULT_DIFFICULTY
from engine.interfaces import ContentProvider
from engine.models import CursorPosition
from engine.session import InputSession

from server.gemini_provider import GeminiProvider
from server.settings import load_settings


# Pydantic models for API
class CreateSessionRequest(BaseModel):
    target_answer: str
    difficulty: int = DEFAULT_DIFFICULTY
    puzzle: Optional[str] = None
    puzzle_type: Optional[str] = None
    max_length: Optional[int] = None


class InputRequest(BaseModel):
    text: str
    cursor_start: Optional[int] = None
    cursor_end: Optional[int] = None


class SessionStateResponse(BaseModel):
    session_id: str
    accepted: bool = True
    status: str
    current_input: str
    cursor: dict  # {start, end}
    difficulty: int
    puzzle_type: Optional[str]
    tier: str
    validation: dict  # {word_valid: [...], char_status: [...]}
    progress: float
    is_correct: bool
    can_undo: bool
    can_redo: bool
    feedback_message: str
    suggestions: dict
    suggestions_open: bool
    hint: Optional[dict]
    active_tactics: list
    character_feedback: dict
    elapsed_seconds: float


class SuggestionsResponse(BaseModel):
    character_suggestions: list
    word_suggestions: list
    from_fallback: bool


class SubmitResponse(BaseModel):
    accepted: bool
    status: str


# Global state (in production, use proper DI)
content_provider: ContentProvider = None
content_timeout: float = CONTENT_TIMEOUT_SECONDS
sessions: dict[str, InputSession] = {}


app = FastAPI(title="Rebuzzle Answer API", description="Real-time answer input for puzzle solving")


def get_session(session_id: str) -> InputSession:
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return sessions[session_id]


def session_state(session_id: str, session: InputSession, accepted: bool = True) -> SessionStateResponse:
    return SessionStateResponse(session_id=session_id, accepted=accepted, **session.state())


@app.on_event("startup")
async def startup():
    """Initialize the content provider on startup."""
    global content_provider, content_timeout

    if content_provider is not None:
        logger.info(f"Using injected content provider: {type(content_provider).__name__}")
        return

    settings = load_settings()
    content_timeout = settings.content_timeout
    content_provider = GeminiProvider(settings.api_key, model_name=settings.model_name)
    logger.info(f"Content provider initialized: {settings.model_name} (timeout {content_timeout}s)")


@app.on_event("shutdown")
async def shutdown():
    """Tear down every open session."""
    for session in sessions.values():
        session.close()
    logger.info(f"Closed {len(sessions)} sessions on shutdown")
    sessions.clear()


@app.post("/api/sessions", response_model=SessionStateResponse)
async def create_session(request: CreateSessionRequest):
    """Start a new answer-input session for a puzzle."""
    if not request.target_answer.strip():
        raise HTTPException(status_code=400, detail="target_answer must not be blank")

    session_id = uuid.uuid4().hex[:8]
    sessions[session_id] = InputSession(
        request.target_answer,
        difficulty=request.difficulty,
        provider=content_provider,
        puzzle=request.puzzle,
        puzzle_type=request.puzzle_type,
        max_length=request.max_length,
        timeout=content_timeout,
    )
    logger.info(f"Created session {session_id} at difficulty {request.difficulty}")
    return session_state(session_id, sessions[session_id])


@app.get("/api/sessions/{session_id}", response_model=SessionStateResponse)
async def get_session_state(session_id: str):
    return session_state(session_id, get_session(session_id))


@app.post("/api/sessions/{session_id}/input", response_model=SessionStateResponse)
async def change_input(session_id: str, request: InputRequest):
    """Apply a raw change event: the field now holds ``text``."""
    session = get_session(session_id)
    cursor = None
    if request.cursor_start is not None:
        end = request.cursor_end if request.cursor_end is not None else request.cursor_start
        cursor = CursorPosition(request.cursor_start, end)
    accepted = session.set_text(request.text, cursor)
    return session_state(session_id, session, accepted)


@app.post("/api/sessions/{session_id}/undo", response_model=SessionStateResponse)
async def undo(session_id: str):
    session = get_session(session_id)
    return session_state(session_id, session, session.undo())


@app.post("/api/sessions/{session_id}/redo", response_model=SessionStateResponse)
async def redo(session_id: str):
    session = get_session(session_id)
    return session_state(session_id, session, session.redo())


@app.post("/api/sessions/{session_id}/accept-suggestion", response_model=SessionStateResponse)
async def accept_suggestion(session_id: str):
    """Replace the last word with the top word suggestion."""
    session = get_session(session_id)
    return session_state(session_id, session, session.accept_suggestion())


@app.post("/api/sessions/{session_id}/suggestions", response_model=SuggestionsResponse)
async def request_suggestions(session_id: str):
    """Fetch suggestions for the current input on demand."""
    session = get_session(session_id)
    result = await session.request_suggestions()
    if result is None:
        # Superseded or closed: report what the session currently shows
        result = session.suggestions.suggestions
    return SuggestionsResponse(**result.to_dict())


@app.post("/api/sessions/{session_id}/submit", response_model=SubmitResponse)
async def submit(session_id: str):
    session = get_session(session_id)
    accepted = session.submit()
    if accepted:
        # Solved sessions are torn down by submit; drop them from the registry
        del sessions[session_id]
        logger.info(f"Session {session_id} solved")
    return SubmitResponse(accepted=accepted, status=session.status.value)


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    """Abandon a session and tear it down."""
    session = get_session(session_id)
    session.close()
    del sessions[session_id]
    logger.info(f"Deleted session {session_id} ({session.status.value})")
    return {"deleted": session_id, "status": session.status.value}


@app.get("/api/stats")
async def get_api_stats():
    """Content provider usage statistics."""
    if not hasattr(content_provider, 'get_stats'):
        return {}
    return content_provider.get_stats()


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
