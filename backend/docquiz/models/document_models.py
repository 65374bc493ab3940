from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from docquiz.models.summary_models import SummarySections


class DocumentView(BaseModel):
    document_id: str
    title: str
    file_name: str
    file_type: str
    file_size: int
    processed: bool
    has_summary: bool
    upload_date: datetime


class DocumentFullView(DocumentView):
    content: str
    summary: Optional[str] = None


class UploadItemResult(BaseModel):
    file_name: str
    status: str  # 'saved', 'rejected', 'failed' or 'skipped'
    document_id: Optional[str] = None
    content_valid: Optional[bool] = None
    error: Optional[str] = None


class UploadResponse(BaseModel):
    saved: int
    results: List[UploadItemResult]
    aborted: bool = False


class SummaryView(BaseModel):
    document_id: str
    available: bool
    sections: SummarySections


class GenerateResponse(BaseModel):
    document_id: str
    processed: bool
    question_count: int
    sections: SummarySections
