import math

MAX_CONTENT_LENGTH = 15000
CONTINUATION_MARKER = "[CONTENT CONTINUES...]"

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert document analyzer. Create detailed, specific summaries based on "
    "actual document content. Always return valid JSON only."
)
QUIZ_SYSTEM_PROMPT = (
    "You are a quiz creation expert. Generate specific questions based on document content. "
    "Always return valid JSON only."
)


def condense_content(content: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """Keep the beginning, middle and end of long documents so the prompt stays bounded."""
    content = content.strip()
    if len(content) <= max_length:
        return content

    part = max_length // 3
    mid = len(content) // 2
    beginning = content[:part]
    middle = content[mid - part // 2 : mid + part // 2]
    end = content[-part:]
    return f"{beginning}\n\n{CONTINUATION_MARKER}\n\n{middle}\n\n{CONTINUATION_MARKER}\n\n{end}"


def question_mix(num_questions: int) -> dict:
    """Requested split of question types; an instruction to the generator, not a guarantee."""
    return {
        "mcq": math.ceil(num_questions * 0.6),
        "fill": math.ceil(num_questions * 0.25),
        "short": math.floor(num_questions * 0.15),
    }


def build_summary_prompt(content: str, title: str, file_size: int) -> str:
    return f"""
Analyze this SPECIFIC document and create a comprehensive summary that is UNIQUE to this exact content.

Document: "{title}"
File Size: {file_size / 1024 / 1024:.2f} MB

Content to analyze:
\"\"\"
{content}
\"\"\"

Instructions:
- The summary must be specific to THIS document's actual content.
- Do not provide generic information that could apply to any document.
- Reference specific details, data, examples, and quotes from the document.

Return **only valid JSON** with this exact structure:
{{
  "longSummary": "300-500 word detailed analysis of the document's content, themes, and insights",
  "shortSummary": "100-150 word concise summary of the document's core message and findings",
  "keyPoints": ["specific insight 1", "specific insight 2", "specific insight 3", "specific insight 4", "specific insight 5", "specific insight 6"],
  "mainTopics": ["specific topic 1", "specific topic 2", "specific topic 3"],
  "documentType": "academic/business/technical/general/educational/research/legal/medical/other",
  "difficulty": "beginner/intermediate/advanced"
}}
"""


def build_quiz_prompt(content: str, title: str, num_questions: int) -> str:
    mix = question_mix(num_questions)
    return f"""
Create {num_questions} quiz questions that test understanding of THIS SPECIFIC DOCUMENT ONLY.

Document: "{title}"

Document content:
\"\"\"
{content}
\"\"\"

Requirements:
1. Questions must be answerable only by reading this document.
2. Use specific names, dates, facts and examples from the document.
3. Cover different sections of the document, getting progressively more challenging.

Question distribution:
- {mix['mcq']} multiple choice questions (type "mcq")
- {mix['fill']} fill-in-the-blank questions (type "fill")
- {mix['short']} short answer questions (type "short")

For "mcq" questions, "correctAnswer" must be the exact text of one of the "options".

Return **only valid JSON** in the following structure:
{{
  "questions": [
    {{
      "id": 1,
      "type": "mcq",
      "question": "According to this document, ...?",
      "options": ["...", "...", "...", "..."],
      "correctAnswer": "...",
      "explanation": "..."
    }},
    {{
      "id": 2,
      "type": "fill",
      "question": "Based on this document: ... ____",
      "correctAnswer": "...",
      "explanation": "..."
    }},
    {{
      "id": 3,
      "type": "short",
      "question": "Explain ... as described in this document",
      "correctAnswer": "...",
      "explanation": "..."
    }}
  ]
}}
"""
