from pydantic import BaseModel, Field, AliasChoices, field_validator
from typing import List


class SummaryFields(BaseModel):
    """Structured summary as returned by the AI service."""
    long_summary: str = Field("", validation_alias=AliasChoices("long_summary", "longSummary"))
    short_summary: str = Field("", validation_alias=AliasChoices("short_summary", "shortSummary"))
    key_points: List[str] = Field(default_factory=list, validation_alias=AliasChoices("key_points", "keyPoints"))
    main_topics: List[str] = Field(default_factory=list, validation_alias=AliasChoices("main_topics", "mainTopics"))
    document_type: str = Field("", validation_alias=AliasChoices("document_type", "documentType"))
    difficulty: str = ""

    @field_validator("key_points", "main_topics", mode="before")
    @classmethod
    def _as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            # left for pydantic to reject
            return value
        return [str(v) for v in value if v is not None and str(v).strip()]

    @field_validator("long_summary", "short_summary", "document_type", "difficulty", mode="before")
    @classmethod
    def _as_text(cls, value):
        return "" if value is None else str(value)


class SummarySections(BaseModel):
    """Decoded view of a stored summary blob. Every field is always populated."""
    detailed: str
    brief: str
    key_points: List[str]
    main_topics: str
    document_type: str
    difficulty: str
