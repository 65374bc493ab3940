import logging
import threading
from contextlib import contextmanager
from typing import Dict, Set

from docquiz.quiz.engine import QuizSession

logger = logging.getLogger(__name__)

# Transient quiz attempts, keyed by session id. Never persisted.
QUIZ_SESSIONS: Dict[str, Dict] = {}
_QUIZ_SESSIONS_LOCK = threading.Lock()
MAX_QUIZ_SESSIONS_PER_USER = 20

# Documents with a generation request currently running.
_IN_FLIGHT: Set[str] = set()
_IN_FLIGHT_LOCK = threading.Lock()


class GenerationInProgress(Exception):
    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Generation already running for document {document_id}")


@contextmanager
def generation_slot(document_id: str):
    """At most one in-flight generation per document."""
    with _IN_FLIGHT_LOCK:
        if document_id in _IN_FLIGHT:
            raise GenerationInProgress(document_id)
        _IN_FLIGHT.add(document_id)
    try:
        yield
    finally:
        with _IN_FLIGHT_LOCK:
            _IN_FLIGHT.discard(document_id)


def store_quiz_session(session_id: str, document_id: str, user_id: str, session: QuizSession) -> None:
    """Keep at most MAX_QUIZ_SESSIONS_PER_USER attempts per user, evicting the oldest."""
    with _QUIZ_SESSIONS_LOCK:
        owned = [sid for sid, entry in QUIZ_SESSIONS.items() if entry["user_id"] == user_id]
        for sid in owned[: max(0, len(owned) - MAX_QUIZ_SESSIONS_PER_USER + 1)]:
            del QUIZ_SESSIONS[sid]
        QUIZ_SESSIONS[session_id] = {
            "document_id": document_id,
            "user_id": user_id,
            "session": session,
        }


def get_quiz_session(session_id: str, user_id: str):
    entry = QUIZ_SESSIONS.get(session_id)
    if not entry or entry["user_id"] != user_id:
        return None
    return entry


def drop_quiz_sessions(user_id: str) -> int:
    with _QUIZ_SESSIONS_LOCK:
        owned = [sid for sid, entry in QUIZ_SESSIONS.items() if entry["user_id"] == user_id]
        for sid in owned:
            del QUIZ_SESSIONS[sid]
    if owned:
        logger.info("Dropped %d quiz session(s) for user %s", len(owned), user_id)
    return len(owned)
