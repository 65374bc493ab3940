from pydantic import BaseModel, Field, AliasChoices, field_validator, model_validator
from typing import List, Literal, Union, Annotated
from pydantic import TypeAdapter


class BaseQuestion(BaseModel):
    id: int = Field(..., ge=1, description="Stable 1-based question id")
    question_text: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("question_text", "questionText", "question"),
        description="The question prompt",
    )
    correct_answer: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("correct_answer", "correctAnswer"),
    )
    explanation: str = Field("", description="Rationale for the correct answer")

    model_config = {"frozen": True}

    @field_validator("correct_answer", "explanation", mode="before")
    @classmethod
    def _stringify(cls, value):
        # generators sometimes answer with a bare number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("explanation", mode="before")
    @classmethod
    def _missing_explanation(cls, value):
        return "" if value is None else value

    @field_validator("question_text", "correct_answer")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class McqQuestion(BaseQuestion):
    type: Literal["mcq"] = "mcq"
    options: List[str] = Field(..., min_length=2, description="Answer choices in presentation order")

    @model_validator(mode="before")
    @classmethod
    def _resolve_index_answer(cls, data):
        # {"correctAnswer": 2} means the option at index 2
        if isinstance(data, dict):
            options = data.get("options")
            for key in ("correct_answer", "correctAnswer"):
                answer = data.get(key)
                if (
                    isinstance(answer, int)
                    and not isinstance(answer, bool)
                    and isinstance(options, list)
                    and 0 <= answer < len(options)
                ):
                    data = {**data, key: options[answer]}
        return data

    @field_validator("options", mode="before")
    @classmethod
    def _option_text(cls, value):
        if isinstance(value, list):
            return [str(v) for v in value if v is not None]
        return value

    @model_validator(mode="after")
    def _answer_is_an_option(self):
        wanted = self.correct_answer.strip().lower()
        if not any(str(opt).strip().lower() == wanted for opt in self.options):
            raise ValueError(f"correct answer {self.correct_answer!r} is not one of the options")
        return self


class FillQuestion(BaseQuestion):
    type: Literal["fill"] = "fill"


class ShortQuestion(BaseQuestion):
    type: Literal["short"] = "short"


Question = Annotated[Union[McqQuestion, FillQuestion, ShortQuestion], Field(discriminator="type")]

QuestionAdapter = TypeAdapter(Question)
QuestionListAdapter = TypeAdapter(List[Question])


class PublicQuestion(BaseModel):
    """A question as shown while the quiz is in progress (no answer metadata)."""
    id: int
    type: Literal["mcq", "fill", "short"]
    question_text: str
    options: List[str] = []
