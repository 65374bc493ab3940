import re
import json
import logging
from typing import List, Dict, Any, Optional

import openai
from pydantic import BaseModel, ValidationError as PydanticValidationError

from docquiz import config
from docquiz.errors import GenerationError, InvalidInputError
from docquiz.models.question_models import Question, QuestionAdapter
from docquiz.models.summary_models import SummaryFields
from docquiz.utils.prompt_templates import (
    SUMMARY_SYSTEM_PROMPT,
    QUIZ_SYSTEM_PROMPT,
    build_summary_prompt,
    build_quiz_prompt,
    condense_content,
)

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 50

_TYPE_ALIASES = {
    "mcq": "mcq",
    "multiple_choice": "mcq",
    "multiple-choice": "mcq",
    "multiple choice": "mcq",
    "fill": "fill",
    "fill_in_the_blank": "fill",
    "fill-in-the-blank": "fill",
    "fill-in-blank": "fill",
    "short": "short",
    "short_answer": "short",
    "short-answer": "short",
}

_client: Optional[openai.OpenAI] = None


def get_client() -> openai.OpenAI:
    global _client
    if _client is None:
        _client = openai.OpenAI(api_key=config.OPENAI_API_KEY)
    return _client


class GenerationResult(BaseModel):
    summary: SummaryFields
    quiz: List[Question]


def target_question_count(file_size: int) -> int:
    """Bigger files get longer quizzes. The generator may still return a different count."""
    if file_size > 1_000_000:
        return 15
    if file_size > 500_000:
        return 10
    return 5


def call_gpt(client, system_prompt: str, prompt: str, model: Optional[str] = None, temperature: float = 0.2) -> str:
    resp = client.chat.completions.create(
        model=model or config.OPENAI_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
        response_format={"type": "json_object"},
    )
    if not getattr(resp, "choices", None):
        raise GenerationError("No response from AI service. Please try again.")
    return resp.choices[0].message.content or ""


def parse_json_payload(raw: str) -> Any:
    cleaned = re.sub(r"```(?:json)?\s*", "", raw or "").strip()
    return json.loads(cleaned)


def parse_questions(payload: Any) -> List[Question]:
    """
    Validate the generator's question list entry by entry.

    Entries are coerced where the intent is clear (type aliases, missing ids,
    index answers) and dropped otherwise. Ids are positional when absent.
    """
    if isinstance(payload, dict):
        payload = payload.get("questions", payload.get("quiz"))
    if not isinstance(payload, list):
        raise GenerationError(f"Quiz response is not a list: {type(payload).__name__}")

    questions: List[Question] = []
    used_ids = set()
    for position, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            logger.warning("Dropping quiz entry %d: not an object (%r)", position, item)
            continue

        entry: Dict[str, Any] = dict(item)
        entry["type"] = _TYPE_ALIASES.get(str(entry.get("type", "")).strip().lower(), entry.get("type"))
        qid = entry.get("id")
        if not isinstance(qid, int) or isinstance(qid, bool) or qid < 1 or qid in used_ids:
            qid = position
            while qid in used_ids:
                qid += 1
            entry["id"] = qid
        if entry["type"] != "mcq":
            entry.pop("options", None)

        try:
            question = QuestionAdapter.validate_python(entry)
        except PydanticValidationError as e:
            logger.warning("Dropping quiz entry %d: %s", position, e.errors()[0].get("msg"))
            continue

        used_ids.add(question.id)
        questions.append(question)

    return questions


def generate_summary_and_quiz(content: str, title: str, file_size: int, client=None, model: Optional[str] = None) -> GenerationResult:
    """
    Ask the AI service for a structured summary and a quiz for one document.

    Raises InvalidInputError before any external call when the content is too
    short, and GenerationError when the service fails or its answer is unusable.
    One attempt per call; retries are up to the caller.
    """
    if not isinstance(content, str) or not content.strip():
        raise InvalidInputError("Document content is empty or invalid. Please upload a document with readable text content.")
    trimmed = content.strip()
    if len(trimmed) < MIN_CONTENT_LENGTH:
        raise InvalidInputError(
            f"Document content is too short for meaningful analysis. "
            f"Minimum {MIN_CONTENT_LENGTH} characters required for AI processing."
        )

    title = (title or "").strip() or "Untitled Document"
    if not file_size or file_size <= 0:
        logger.warning("Invalid file size %r for %r, using content length", file_size, title)
        file_size = len(trimmed)

    num_questions = target_question_count(file_size)
    prepared = condense_content(trimmed)
    logger.info("Generating summary and %d questions for %r (%d chars)", num_questions, title, len(prepared))

    try:
        client = client or get_client()
        summary_raw = call_gpt(client, SUMMARY_SYSTEM_PROMPT, build_summary_prompt(prepared, title, file_size), model=model)
        quiz_raw = call_gpt(client, QUIZ_SYSTEM_PROMPT, build_quiz_prompt(prepared, title, num_questions), model=model, temperature=0.3)
    except openai.OpenAIError as e:
        logger.error("AI service error for %r: %s", title, e)
        raise GenerationError(f"AI service error: {e}") from e

    try:
        summary_payload = parse_json_payload(summary_raw)
    except ValueError as e:
        logger.error("Failed to parse summary JSON for %r: %r", title, summary_raw)
        raise GenerationError("Failed to parse AI summary response. Please try again.") from e
    if not isinstance(summary_payload, dict):
        raise GenerationError("Invalid summary response from AI service. Please try again.")

    try:
        quiz_payload = parse_json_payload(quiz_raw)
    except ValueError as e:
        logger.error("Failed to parse quiz JSON for %r: %r", title, quiz_raw)
        raise GenerationError("Failed to parse AI quiz response. Please try again.") from e

    try:
        summary = SummaryFields.model_validate(summary_payload)
    except PydanticValidationError as e:
        raise GenerationError(f"Invalid summary response from AI service: {e.errors()[0].get('msg')}") from e
    quiz = parse_questions(quiz_payload)

    if not quiz:
        raise GenerationError(
            "AI could not generate quiz questions from this content. "
            "Please ensure your document has substantial readable text."
        )

    if len(quiz) != num_questions:
        logger.info("Requested %d questions for %r, received %d", num_questions, title, len(quiz))
    return GenerationResult(summary=summary, quiz=quiz)
