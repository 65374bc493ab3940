from typing import Dict, List, Optional, Sequence, Tuple

from docquiz.errors import QuizStateError
from docquiz.models.question_models import Question

IN_PROGRESS = "in_progress"
COMPLETED = "completed"

# percentage thresholds
MESSAGE_TIERS = ((90, "top"), (70, "mid"))
COLOR_TIERS = ((80, "green"), (60, "yellow"))

TIER_COPY = {
    "top": ("Outstanding Performance!", "You've mastered this topic completely! Ready for the next challenge?"),
    "mid": ("Great Job!", "You're doing well! Keep practicing to reach perfection."),
    "low": ("Keep Learning!", "Every expert was once a beginner. Review and try again!"),
}


def normalize_answer(answer: Optional[str]) -> str:
    return (answer or "").strip().lower()


def is_correct(question: Question, answer: Optional[str]) -> bool:
    """Exact match after trimming and case-folding. No partial credit."""
    return answer is not None and normalize_answer(answer) == normalize_answer(question.correct_answer)


def score_answers(questions: Sequence[Question], answers: Dict[int, str]) -> int:
    return sum(1 for idx, q in enumerate(questions) if is_correct(q, answers.get(idx)))


def percentage(score: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round(100 * score / total))


def message_tier(pct: int) -> str:
    for threshold, tier in MESSAGE_TIERS:
        if pct >= threshold:
            return tier
    return "low"


def color_tier(pct: int) -> str:
    for threshold, tier in COLOR_TIERS:
        if pct >= threshold:
            return tier
    return "red"


class QuizSession:
    """
    Walks a fixed, ordered list of questions one index at a time.

    States are in progress (current index, recorded answers, pending answer)
    and completed (score). The question list is never mutated.
    """

    def __init__(self, questions: Sequence[Question]):
        if not questions:
            raise QuizStateError("A quiz needs at least one question")
        self._questions: Tuple[Question, ...] = tuple(questions)
        self.reset()

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def current_question(self) -> Optional[Question]:
        if self.completed:
            return None
        return self._questions[self.current_index]

    def reset(self) -> None:
        self.status = IN_PROGRESS
        self.current_index = 0
        self.answers: Dict[int, str] = {}
        self.pending_answer = ""
        self.score: Optional[int] = None

    def select_answer(self, text: str) -> None:
        if self.completed:
            raise QuizStateError("Quiz already completed")
        self.pending_answer = text if isinstance(text, str) else ""

    def advance(self) -> bool:
        """
        Record the pending answer and move on, scoring after the last question.
        Returns False, leaving the state untouched, when nothing was answered.
        """
        if self.completed:
            raise QuizStateError("Quiz already completed")
        if not self.pending_answer.strip():
            return False

        self.answers[self.current_index] = self.pending_answer
        if self.current_index == self.total - 1:
            self.score = score_answers(self._questions, self.answers)
            self.status = COMPLETED
            self.pending_answer = ""
        else:
            self.current_index += 1
            self.pending_answer = self.answers.get(self.current_index, "")
        return True

    def retreat(self) -> bool:
        if self.completed:
            raise QuizStateError("Quiz already completed")
        if self.current_index == 0:
            return False
        self.current_index -= 1
        self.pending_answer = self.answers.get(self.current_index, "")
        return True

    @property
    def percentage(self) -> Optional[int]:
        if self.score is None:
            return None
        return percentage(self.score, self.total)

    def review(self) -> List[dict]:
        return [
            {
                "question_id": q.id,
                "question_text": q.question_text,
                "submitted": self.answers.get(idx),
                "correct_answer": q.correct_answer,
                "explanation": q.explanation,
                "correct": is_correct(q, self.answers.get(idx)),
            }
            for idx, q in enumerate(self._questions)
        ]

    def result(self) -> dict:
        if not self.completed:
            raise QuizStateError("Quiz not yet complete")
        pct = self.percentage
        tier = message_tier(pct)
        title, description = TIER_COPY[tier]
        return {
            "score": self.score,
            "total_questions": self.total,
            "percentage": pct,
            "message_tier": tier,
            "color_tier": color_tier(pct),
            "title": title,
            "description": description,
            "review": self.review(),
        }
