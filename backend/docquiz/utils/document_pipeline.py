import os
import logging
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from docquiz import config
from docquiz.db.models import Document
from docquiz.errors import ValidationError, InvalidInputError, ExtractionError, GenerationError, PersistenceError
from docquiz.storage import repository
from docquiz.storage.memory import generation_slot
from docquiz.utils.summary_codec import encode_summary
from docquiz.utils.summary_generation import generate_summary_and_quiz, GenerationResult
from docquiz.utils.text_extraction import extract_file_content, validate_content

logger = logging.getLogger(__name__)


class IncomingFile(NamedTuple):
    file_name: str
    media_type: str
    data: bytes


# -------------------------Upload-------------------------
def check_file(file_name: str, size: int) -> Optional[str]:
    """Return the reason a single file is rejected, or None."""
    ext = os.path.splitext(file_name or "")[1].lower()
    if not ext or ext not in config.ALLOWED_EXTENSIONS:
        return "File extension not allowed"
    if size > config.MAX_FILE_SIZE:
        return "File size must be less than 50MB"
    if size == 0:
        return "File is empty"
    return None


def check_batch(files: List[IncomingFile]) -> None:
    if not files:
        raise ValidationError("No files were uploaded")
    if len(files) > config.MAX_FILES_PER_UPLOAD:
        raise ValidationError(f"You can upload at most {config.MAX_FILES_PER_UPLOAD} files at once")
    total = sum(len(f.data) for f in files)
    if total > config.MAX_TOTAL_UPLOAD_SIZE:
        raise ValidationError("Total upload size must be less than 200MB")


def _title_from(file_name: str) -> str:
    return os.path.splitext(os.path.basename(file_name))[0] or file_name


def process_uploads(db: Session, user_id: str, files: List[IncomingFile]) -> dict:
    """
    Extract and save each file in order.

    Batch limits are checked up front. A bad file is reported and skipped;
    a store failure stops the loop and keeps whatever was saved before it.
    """
    check_batch(files)

    results = []
    saved = 0
    aborted = False
    for f in files:
        if aborted:
            results.append({"file_name": f.file_name, "status": "skipped"})
            continue

        reason = check_file(f.file_name, len(f.data))
        if reason:
            logger.info("Rejected %s: %s", f.file_name, reason)
            results.append({"file_name": f.file_name, "status": "rejected", "error": reason})
            continue

        try:
            content = extract_file_content(f.file_name, f.media_type, f.data)
        except ExtractionError as e:
            results.append({"file_name": f.file_name, "status": "failed", "error": e.message})
            continue

        content_valid = validate_content(content)
        try:
            doc = repository.create_document(
                db,
                user_id=user_id,
                title=_title_from(f.file_name),
                file_name=f.file_name,
                file_type=f.media_type,
                file_size=len(f.data),
                content=content,
                processed=content_valid,
            )
        except PersistenceError as e:
            results.append({"file_name": f.file_name, "status": "failed", "error": e.message})
            aborted = True
            continue

        saved += 1
        results.append({
            "file_name": f.file_name,
            "status": "saved",
            "document_id": doc.id,
            "content_valid": content_valid,
        })

    return {"saved": saved, "results": results, "aborted": aborted}


# -------------------------Generation-------------------------
def process_document(db: Session, doc: Document, user_id: str, client=None) -> GenerationResult:
    """
    Generate, encode and store the summary and quiz for one document.

    On GenerationError or InvalidInputError the document is still marked processed (summary left
    unset) so it is not retried forever; the error is re-raised for reporting.
    Raises GenerationInProgress when another request for the same document is
    running.
    """
    with generation_slot(doc.id):
        try:
            result = generate_summary_and_quiz(doc.content, doc.title, doc.file_size, client=client)
        except (GenerationError, InvalidInputError) as e:
            logger.error("Generation failed for document %s: %s", doc.id, e.message)
            repository.update_document_summary(db, doc.id, summary=None, processed=True)
            raise

        repository.update_document_summary(db, doc.id, summary=encode_summary(result.summary), processed=True)
        repository.upsert_quiz(
            db,
            document_id=doc.id,
            user_id=user_id,
            questions=[q.model_dump() for q in result.quiz],
        )
        logger.info("Stored summary and %d questions for document %s", len(result.quiz), doc.id)
        return result
