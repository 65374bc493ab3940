from pydantic import BaseModel
from typing import Optional, List, Literal

from docquiz.models.question_models import Question, PublicQuestion


class QuizView(BaseModel):
    document_id: str
    questions: List[Question]


class QuizSessionCreated(BaseModel):
    session_id: str
    document_id: str
    total_questions: int
    status: str


class AnswerSelection(BaseModel):
    answer: str


class QuestionReview(BaseModel):
    question_id: int
    question_text: str
    submitted: Optional[str] = None
    correct_answer: str
    explanation: str
    correct: bool


class QuizResult(BaseModel):
    score: int
    total_questions: int
    percentage: int
    message_tier: Literal["top", "mid", "low"]
    color_tier: Literal["green", "yellow", "red"]
    title: str
    description: str
    review: List[QuestionReview]


class QuizSessionState(BaseModel):
    session_id: str
    document_id: str
    status: Literal["in_progress", "completed"]
    current_index: int
    total_questions: int
    pending_answer: str = ""
    question: Optional[PublicQuestion] = None
    result: Optional[QuizResult] = None
