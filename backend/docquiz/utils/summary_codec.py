from typing import Optional, Union

from docquiz.models.summary_models import SummaryFields, SummarySections

HEADER_MARK = "##"
BULLET = "•"

DETAILED_HEADER = "Detailed Summary"
BRIEF_HEADER = "Brief Summary"
KEY_POINTS_HEADER = "Key Points"
MAIN_TOPICS_HEADER = "Main Topics"
CLASSIFICATION_HEADER = "Document Classification"

FALLBACKS = {
    "detailed": "Detailed summary not available",
    "brief": "Brief summary not available",
    "key_points": ["Key points not available"],
    "main_topics": "Topics not available",
    "document_type": "Unknown",
    "difficulty": "Unknown",
}


def _one_line(text: str) -> str:
    # list items and classification values are stored one per line
    return " ".join(text.split())


def encode_summary(fields: Union[SummaryFields, dict]) -> str:
    """Render summary fields as the tagged text blob stored on a document."""
    if isinstance(fields, dict):
        fields = SummaryFields.model_validate(fields)

    key_points = "\n".join(f"{BULLET} {_one_line(point)}" for point in fields.key_points if point.strip())
    main_topics = ", ".join(_one_line(topic) for topic in fields.main_topics if topic.strip())

    return f"""{HEADER_MARK} {DETAILED_HEADER}
{fields.long_summary.strip()}

{HEADER_MARK} {BRIEF_HEADER}
{fields.short_summary.strip()}

{HEADER_MARK} {KEY_POINTS_HEADER}
{key_points}

{HEADER_MARK} {MAIN_TOPICS_HEADER}
{main_topics}

{HEADER_MARK} {CLASSIFICATION_HEADER}
Type: {_one_line(fields.document_type) or 'Unknown'}
Difficulty: {_one_line(fields.difficulty) or 'Unknown'}"""


def parse_summary(summary_text: Optional[str]) -> SummarySections:
    """
    Split a stored summary blob back into its sections.

    Never fails: missing sections, empty sections and non-string input all
    come back as the per-field placeholder text.
    """
    parsed = {
        "detailed": "",
        "brief": "",
        "key_points": [],
        "main_topics": "",
        "document_type": "",
        "difficulty": "",
    }

    if isinstance(summary_text, str):
        for section in summary_text.split(HEADER_MARK):
            if not section.strip():
                continue
            lines = section.strip().split("\n")
            heading = lines[0].strip().lower()
            body = lines[1:]
            content = "\n".join(body).strip()

            if DETAILED_HEADER.lower() in heading:
                parsed["detailed"] = content
            elif BRIEF_HEADER.lower() in heading:
                parsed["brief"] = content
            elif KEY_POINTS_HEADER.lower() in heading:
                parsed["key_points"] = [
                    line.strip()[len(BULLET):].strip()
                    for line in body
                    if line.strip().startswith(BULLET) and line.strip()[len(BULLET):].strip()
                ]
            elif MAIN_TOPICS_HEADER.lower() in heading:
                parsed["main_topics"] = content
            elif CLASSIFICATION_HEADER.lower() in heading:
                for line in body:
                    line = line.strip()
                    if line.startswith("Type:"):
                        parsed["document_type"] = line[len("Type:"):].strip()
                    elif line.startswith("Difficulty:"):
                        parsed["difficulty"] = line[len("Difficulty:"):].strip()

    for key, fallback in FALLBACKS.items():
        if not parsed[key]:
            parsed[key] = list(fallback) if isinstance(fallback, list) else fallback

    return SummarySections(**parsed)

