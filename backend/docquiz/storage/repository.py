import logging
from uuid import uuid4
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session

from docquiz.db.models import User, Document, Quiz
from docquiz.errors import PersistenceError

logger = logging.getLogger(__name__)


def _fail(db: Session, action: str, exc: Exception):
    db.rollback()
    logger.error("Failed to %s: %s", action, exc)
    raise PersistenceError(f"Failed to {action}") from exc


# -------------------------Users-------------------------
def create_user(db: Session, email: str, full_name: str, password_hash: str) -> Optional[User]:
    """Returns None when the email is already registered."""
    user = User(id=str(uuid4()), email=email.lower(), full_name=full_name, password_hash=password_hash)
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        return None
    except SQLAlchemyError as e:
        _fail(db, "create user", e)
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    try:
        return db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
    except SQLAlchemyError as e:
        _fail(db, "read user", e)


def get_user(db: Session, user_id: str) -> Optional[User]:
    try:
        return db.get(User, user_id)
    except SQLAlchemyError as e:
        _fail(db, "read user", e)


# -------------------------Documents-------------------------
def create_document(
    db: Session,
    user_id: str,
    title: str,
    file_name: str,
    file_type: str,
    file_size: int,
    content: str,
    processed: bool = False,
) -> Document:
    doc = Document(
        id=str(uuid4()),
        user_id=user_id,
        title=title,
        file_name=file_name,
        file_type=file_type or "",
        file_size=file_size,
        content=content,
        summary=None,
        processed=processed,
        upload_date=datetime.now(),
    )
    try:
        db.add(doc)
        db.commit()
        db.refresh(doc)
    except SQLAlchemyError as e:
        _fail(db, f"save document {file_name}", e)
    return doc


def update_document_summary(db: Session, document_id: str, summary: Optional[str], processed: bool = True) -> None:
    """Set summary and processed. A None summary leaves the stored one untouched."""
    try:
        doc = db.get(Document, document_id)
        if doc is None:
            raise PersistenceError(f"Document {document_id} disappeared before update")
        if summary is not None:
            doc.summary = summary
        doc.processed = processed
        db.commit()
    except SQLAlchemyError as e:
        _fail(db, "save summary", e)


def get_document(db: Session, document_id: str, user_id: str) -> Optional[Document]:
    try:
        return db.execute(
            select(Document).where(Document.id == document_id, Document.user_id == user_id)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        _fail(db, "read document", e)


def list_documents(db: Session, user_id: str) -> List[Document]:
    try:
        return list(
            db.execute(
                select(Document)
                .where(Document.user_id == user_id)
                .order_by(Document.upload_date.desc(), Document.id)
            ).scalars()
        )
    except SQLAlchemyError as e:
        _fail(db, "list documents", e)


# -------------------------Quizzes-------------------------
def upsert_quiz(db: Session, document_id: str, user_id: str, questions: List[dict]) -> Quiz:
    """Insert or replace the question set for (document, user)."""
    try:
        quiz = db.execute(
            select(Quiz).where(Quiz.document_id == document_id, Quiz.user_id == user_id)
        ).scalar_one_or_none()
        if quiz is None:
            quiz = Quiz(document_id=document_id, user_id=user_id, questions=questions)
            db.add(quiz)
        else:
            quiz.questions = questions
        db.commit()
        db.refresh(quiz)
    except SQLAlchemyError as e:
        _fail(db, "save quiz", e)
    return quiz


def get_quiz(db: Session, document_id: str, user_id: str) -> Optional[Quiz]:
    try:
        return db.execute(
            select(Quiz).where(Quiz.document_id == document_id, Quiz.user_id == user_id)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        _fail(db, "read quiz", e)
