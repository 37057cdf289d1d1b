from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, ValidationError

from ..gemini_client import AIGenerationError, GeminiClient
from ..papers import ExamPaper, Question, safe_text
from .exam_papers import error_response, pdf_response


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/exam-papers", tags=["ai_exam_papers"])


MIN_QUESTIONS = 10
MAX_QUESTIONS = 30
DEFAULT_QUESTIONS = 20
OPTIONS_PER_QUESTION = 4

SYSTEM_PROMPT = "You generate 11+ exam papers as strictly valid JSON matching the provided schema."

# Gemini responseSchema (OpenAPI subset)
PAPER_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "required": ["title", "subject", "board", "timeAllowed", "instructions", "questions"],
    "properties": {
        "title": {"type": "STRING"},
        "subject": {"type": "STRING"},
        "board": {"type": "STRING"},
        "timeAllowed": {"type": "STRING"},
        "instructions": {"type": "STRING"},
        "passage": {"type": "STRING"},
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "required": ["id", "questionText", "options", "correctAnswerIndex", "explanation"],
                "properties": {
                    "id": {"type": "STRING"},
                    "questionText": {"type": "STRING"},
                    "options": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "minItems": OPTIONS_PER_QUESTION,
                        "maxItems": OPTIONS_PER_QUESTION,
                    },
                    "correctAnswerIndex": {"type": "INTEGER", "minimum": 0, "maximum": OPTIONS_PER_QUESTION - 1},
                    "explanation": {"type": "STRING"},
                },
            },
        },
    },
}


class GeneratePaperForm(BaseModel):
    subject: str = Field(strict=True)
    paperTitle: Any = None
    schoolName: Any = None
    yearGroup: Any = None
    examBoard: Any = None
    difficulty: Any = None
    focusAreas: Any = None
    questionCount: Any = None
    includePassage: Any = None


def clamp_int(value: Any, low: int, high: int, fallback: int) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        n = math.floor(value)
    else:
        n = fallback
    return max(low, min(high, n))


def build_paper_prompt(form: GeneratePaperForm) -> str:
    subject = safe_text(form.subject, "maths")
    title = safe_text(form.paperTitle, f"11+ {subject} Practice Paper")
    school = safe_text(form.schoolName)
    year_group = safe_text(form.yearGroup, "Year 5")
    board = safe_text(form.examBoard, "GL")
    difficulty = safe_text(form.difficulty, "intermediate")
    focus = safe_text(form.focusAreas)
    count = clamp_int(form.questionCount, MIN_QUESTIONS, MAX_QUESTIONS, DEFAULT_QUESTIONS)

    lines: List[str] = [
        "Create a realistic 11+ practice paper.",
        f"Subject: {subject}. Exam style: {board}. Difficulty: {difficulty}. Target: {year_group}.",
    ]
    if school:
        lines.append(f"Context school: {school}.")
    if focus:
        lines.append(f"Focus areas to include (prioritise): {focus}.")
    lines.append(f"Return exactly {count} multiple-choice questions.")
    lines.append("Each question must have 4 options, exactly one correct answer, and a clear explanation.")
    lines.append("Write in an exam-board neutral tone. Do not mention AI or the generation process.")

    lowered = subject.lower()
    if bool(form.includePassage) or "english" in lowered or "comprehension" in lowered:
        lines.append('Include a short reading passage in "passage" and include some questions based on it.')
    else:
        lines.append("Do not include a passage unless the subject requires it.")
    lines.append(f'Set title to: "{title}".')
    return "\n".join(lines)


def normalize_generated_paper(data: Dict[str, Any], question_count: int) -> ExamPaper:
    """Coerce model output into a four-option paper of at most ``question_count`` questions."""
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        raw_questions = []
    questions: List[Question] = []
    for raw in raw_questions[:question_count]:
        if not isinstance(raw, dict):
            continue
        options = raw.get("options")
        options = [safe_text(o) for o in options] if isinstance(options, list) else []
        options = (options + [""] * OPTIONS_PER_QUESTION)[:OPTIONS_PER_QUESTION]
        questions.append(
            Question(
                questionText=safe_text(raw.get("questionText")),
                options=options,
                correctAnswerIndex=clamp_int(raw.get("correctAnswerIndex"), 0, OPTIONS_PER_QUESTION - 1, 0),
                explanation=safe_text(raw.get("explanation")),
            )
        )
    if not questions:
        raise AIGenerationError("AI provider returned no questions")
    return ExamPaper(
        title=safe_text(data.get("title"), "11+ Practice Paper"),
        subject=safe_text(data.get("subject"), "maths"),
        board=safe_text(data.get("board"), "Standard"),
        timeAllowed=safe_text(data.get("timeAllowed"), "50 minutes"),
        instructions=safe_text(data.get("instructions"), "Answer all questions. Choose the best answer for each question."),
        passage=safe_text(data.get("passage")),
        questions=questions,
    )


async def generate_paper(client: GeminiClient, form: GeneratePaperForm) -> ExamPaper:
    count = clamp_int(form.questionCount, MIN_QUESTIONS, MAX_QUESTIONS, DEFAULT_QUESTIONS)
    data = await client.generate_json(build_paper_prompt(form), schema=PAPER_SCHEMA, system=SYSTEM_PROMPT)
    return normalize_generated_paper(data, count)


def get_client_factory() -> Callable[[], GeminiClient]:
    return GeminiClient


@router.post("/generate-ai-pdf")
async def generate_ai_pdf(request: Request, client_factory: Callable[[], GeminiClient] = Depends(get_client_factory)):
    try:
        body = await request.json()
    except ValueError:
        return error_response(400, "Invalid JSON body")
    try:
        form = GeneratePaperForm.model_validate(body)
    except ValidationError:
        return error_response(400, "Missing required field: subject")

    try:
        client = client_factory()
    except AIGenerationError as e:
        return error_response(500, str(e))
    try:
        paper = await generate_paper(client, form)
    except AIGenerationError as e:
        logger.warning("AI paper generation failed for subject %r: %s", form.subject, e)
        return error_response(500, str(e) or "Failed to generate exam paper")
    finally:
        await client.aclose()
    return pdf_response(paper)
