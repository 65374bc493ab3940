import logging
from contextlib import asynccontextmanager
from uuid import uuid4
from typing import List, Optional

from fastapi import FastAPI, HTTPException, UploadFile, File, Depends, Header, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from docquiz import config
from docquiz.auth.security import (
    RateLimiter, validate_email, validate_password, validate_full_name, hash_password, verify_password,
)
from docquiz.auth.session import SessionManager
from docquiz.db.session import get_db, create_db_and_tables
from docquiz.errors import (
    DocQuizError, ValidationError, InvalidInputError, ExtractionError, GenerationError,
    PersistenceError, AuthError, RateLimitError, QuizStateError,
)
from docquiz.models.auth_models import SignUpRequest, SignInRequest, SignInResponse, UserView
from docquiz.models.document_models import (
    DocumentView, DocumentFullView, UploadResponse, SummaryView, GenerateResponse,
)
from docquiz.models.question_models import QuestionListAdapter, PublicQuestion
from docquiz.models.quiz_models import QuizView, QuizSessionCreated, AnswerSelection, QuizSessionState, QuizResult
from docquiz.quiz.engine import QuizSession
from docquiz.storage import repository
from docquiz.storage.memory import GenerationInProgress, store_quiz_session, get_quiz_session, drop_quiz_sessions
from docquiz.utils.document_pipeline import IncomingFile, process_uploads, process_document
from docquiz.utils.summary_codec import parse_summary, encode_summary

config.configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield


app = FastAPI(title="DocQuiz API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def new_session_manager() -> SessionManager:
    return SessionManager(config.SESSION_INACTIVITY_SECONDS, on_end=drop_quiz_sessions)


app.state.sessions = new_session_manager()
app.state.rate_limiter = RateLimiter(max_attempts=5, window_seconds=15 * 60)


# -------------------------Error mapping-------------------------
_STATUS_BY_ERROR = (
    (InvalidInputError, 422),
    (ValidationError, 400),
    (ExtractionError, 422),
    (GenerationError, 502),
    (RateLimitError, 429),
    (AuthError, 401),
    (QuizStateError, 409),
    (PersistenceError, 500),
)


@app.exception_handler(DocQuizError)
async def docquiz_error_handler(request: Request, exc: DocQuizError):
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"Retry-After": str(int(exc.retry_after))} if isinstance(exc, RateLimitError) else None
    return JSONResponse(status_code=status, content={"detail": exc.message}, headers=headers)


# -------------------------Dependencies-------------------------
def get_ai_client():
    """None means the default OpenAI client, created on first use."""
    return None


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else None


def current_user_id(request: Request, authorization: Optional[str] = Header(None)) -> str:
    return request.app.state.sessions.resolve(_bearer_token(authorization))


def _document_or_404(db: Session, doc_id: str, user_id: str):
    doc = repository.get_document(db, doc_id, user_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


def _document_view(doc) -> dict:
    return {
        "document_id": doc.id,
        "title": doc.title,
        "file_name": doc.file_name,
        "file_type": doc.file_type,
        "file_size": doc.file_size,
        "processed": doc.processed,
        "has_summary": doc.summary is not None,
        "upload_date": doc.upload_date,
    }


# -------------------------Health-------------------------
@app.get("/", include_in_schema=False)
def root_get():
    return {"ok": True, "service": "docquiz", "docs": "/docs"}

@app.head("/", include_in_schema=False)
def root_head():
    return Response(status_code=200)

@app.get("/healthz", include_in_schema=False)
def health_get():
    return {"ok": True}

@app.head("/healthz", include_in_schema=False)
def health_head():
    return Response(status_code=200)


# -------------------------Auth-------------------------
@app.post("/auth/sign-up", response_model=UserView, status_code=201)
def sign_up(payload: SignUpRequest, db: Session = Depends(get_db)):
    errors = []
    if not validate_email(payload.email):
        errors.append("Please enter a valid email address")
    _, password_errors = validate_password(payload.password)
    errors.extend(password_errors)
    if not validate_full_name(payload.full_name):
        errors.append("Full name must be 2-100 letters, spaces, apostrophes or hyphens")
    if errors:
        raise HTTPException(status_code=400, detail=errors)

    user = repository.create_user(db, payload.email, payload.full_name.strip(), hash_password(payload.password))
    if user is None:
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    return {"user_id": user.id, "email": user.email, "full_name": user.full_name}


@app.post("/auth/sign-in", response_model=SignInResponse)
def sign_in(payload: SignInRequest, request: Request, db: Session = Depends(get_db)):
    limiter: RateLimiter = request.app.state.rate_limiter
    key = payload.email.strip().lower()
    if not limiter.is_allowed(key):
        raise RateLimitError(limiter.remaining_time(key))

    user = repository.get_user_by_email(db, key)
    if user is None or not verify_password(user.password_hash, payload.password):
        raise AuthError("Invalid email or password")

    limiter.reset(key)
    sessions: SessionManager = request.app.state.sessions
    token = sessions.sign_in(user.id)
    return {
        "token": token,
        "user_id": user.id,
        "full_name": user.full_name,
        "expires_in": int(sessions.timeout_seconds),
    }


@app.post("/auth/sign-out", status_code=204)
def sign_out(request: Request, authorization: Optional[str] = Header(None)):
    request.app.state.sessions.sign_out(_bearer_token(authorization))
    return Response(status_code=204)


# -------------------------Documents-------------------------
@app.post("/documents/upload", response_model=UploadResponse)
async def upload_documents(
    files: List[UploadFile] = File(...),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    incoming = []
    for f in files:
        data = await f.read()
        incoming.append(IncomingFile(f.filename or "upload", f.content_type or "", data))
    logger.info("User %s uploading %d file(s)", user_id, len(incoming))
    return process_uploads(db, user_id, incoming)


@app.get("/documents", response_model=List[DocumentView])
def list_documents(user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    return [_document_view(doc) for doc in repository.list_documents(db, user_id)]


@app.get("/documents/{doc_id}", response_model=DocumentFullView)
def get_document(doc_id: str, user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    doc = _document_or_404(db, doc_id, user_id)
    return {**_document_view(doc), "content": doc.content, "summary": doc.summary}


@app.get("/documents/{doc_id}/summary", response_model=SummaryView)
def get_document_summary(doc_id: str, user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    doc = _document_or_404(db, doc_id, user_id)
    return {
        "document_id": doc.id,
        "available": doc.summary is not None,
        "sections": parse_summary(doc.summary),
    }


@app.post("/documents/{doc_id}/generate", response_model=GenerateResponse)
def generate_summary(
    doc_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
    client=Depends(get_ai_client),
):
    doc = _document_or_404(db, doc_id, user_id)
    try:
        result = process_document(db, doc, user_id, client=client)
    except GenerationInProgress:
        raise HTTPException(status_code=409, detail="Summary generation is already running for this document")

    return {
        "document_id": doc.id,
        "processed": True,
        "question_count": len(result.quiz),
        "sections": parse_summary(encode_summary(result.summary)),
    }


@app.get("/documents/{doc_id}/quiz", response_model=QuizView)
def get_document_quiz(doc_id: str, user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    _document_or_404(db, doc_id, user_id)
    quiz = repository.get_quiz(db, doc_id, user_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="No quiz generated for this document yet")
    return {"document_id": doc_id, "questions": QuestionListAdapter.validate_python(quiz.questions)}


# -------------------------Quiz sessions-------------------------
def _session_state(session_id: str, entry: dict) -> dict:
    session: QuizSession = entry["session"]
    question = session.current_question
    return {
        "session_id": session_id,
        "document_id": entry["document_id"],
        "status": session.status,
        "current_index": session.current_index,
        "total_questions": session.total,
        "pending_answer": session.pending_answer,
        "question": PublicQuestion(
            id=question.id,
            type=question.type,
            question_text=question.question_text,
            options=list(getattr(question, "options", [])),
        ) if question else None,
        "result": session.result() if session.completed else None,
    }


def _session_or_404(session_id: str, user_id: str) -> dict:
    entry = get_quiz_session(session_id, user_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Quiz session not found")
    return entry


@app.post("/documents/{doc_id}/quiz-sessions", response_model=QuizSessionCreated)
def create_quiz_session(doc_id: str, user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    _document_or_404(db, doc_id, user_id)
    quiz = repository.get_quiz(db, doc_id, user_id)
    if not quiz or not quiz.questions:
        raise HTTPException(status_code=400, detail="No questions available for this document.")

    questions = QuestionListAdapter.validate_python(quiz.questions)
    session_id = str(uuid4())
    session = QuizSession(questions)
    store_quiz_session(session_id, doc_id, user_id, session)
    return {
        "session_id": session_id,
        "document_id": doc_id,
        "total_questions": len(questions),
        "status": session.status,
    }


@app.get("/quiz-sessions/{session_id}", response_model=QuizSessionState)
def get_quiz_session_state(session_id: str, user_id: str = Depends(current_user_id)):
    return _session_state(session_id, _session_or_404(session_id, user_id))


@app.post("/quiz-sessions/{session_id}/select", response_model=QuizSessionState)
def select_answer(session_id: str, selection: AnswerSelection, user_id: str = Depends(current_user_id)):
    entry = _session_or_404(session_id, user_id)
    entry["session"].select_answer(selection.answer)
    return _session_state(session_id, entry)


@app.post("/quiz-sessions/{session_id}/advance", response_model=QuizSessionState)
def advance_question(session_id: str, user_id: str = Depends(current_user_id)):
    entry = _session_or_404(session_id, user_id)
    if not entry["session"].advance():
        raise HTTPException(status_code=400, detail="Please provide an answer before continuing")
    return _session_state(session_id, entry)


@app.post("/quiz-sessions/{session_id}/retreat", response_model=QuizSessionState)
def retreat_question(session_id: str, user_id: str = Depends(current_user_id)):
    entry = _session_or_404(session_id, user_id)
    if not entry["session"].retreat():
        raise HTTPException(status_code=400, detail="Already at the first question")
    return _session_state(session_id, entry)


@app.post("/quiz-sessions/{session_id}/reset", response_model=QuizSessionState)
def reset_quiz(session_id: str, user_id: str = Depends(current_user_id)):
    entry = _session_or_404(session_id, user_id)
    entry["session"].reset()
    return _session_state(session_id, entry)


@app.get("/quiz-sessions/{session_id}/result", response_model=QuizResult)
def get_quiz_result(session_id: str, user_id: str = Depends(current_user_id)):
    entry = _session_or_404(session_id, user_id)
    session: QuizSession = entry["session"]
    if not session.completed:
        raise HTTPException(status_code=400, detail="Quiz not yet complete")
    return session.result()
