from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_TITLE = "11+ Exam Paper"
DEFAULT_SUBJECT = "Subject"
DEFAULT_BOARD = "Standard"
DEFAULT_TIME_ALLOWED = "Not specified"
DEFAULT_INSTRUCTIONS = "Answer all questions. Choose the best answer for each question."
DEFAULT_FILENAME = "exam-paper"

# Option letters run A..Z
MAX_OPTIONS = 26

EXPECTED_SHAPE_MESSAGE = (
    "Body must include { title: string, subject: string, questions: [{ questionText, options[] }] }"
)


class PaperValidationError(ValueError):
    """Raised when a field is well-typed but its value cannot produce a sound paper."""


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    questionText: str = ""
    options: List[str] = Field(default_factory=list)
    correctAnswerIndex: int = 0
    explanation: str = ""


class ExamPaper(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    subject: str
    board: str = DEFAULT_BOARD
    timeAllowed: str = DEFAULT_TIME_ALLOWED
    instructions: str = DEFAULT_INSTRUCTIONS
    passage: str = ""
    questions: List[Question] = Field(default_factory=list)


class ExamPaperRequest(BaseModel):
    # Only the structural shape is enforced here; everything else is
    # normalized by normalize_paper.
    title: str = Field(strict=True)
    subject: str = Field(strict=True)
    board: Any = None
    timeAllowed: Any = None
    instructions: Any = None
    passage: Any = None
    questions: List[Dict[str, Any]] = Field(min_length=1)


def safe_text(value: Any, fallback: str = "") -> str:
    if not isinstance(value, str):
        return fallback
    return value.replace("\r", "")


def _as_index(value: Any) -> Optional[int]:
    # JSON numbers may arrive as floats (1.0); NaN and infinities count as missing
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return math.floor(value)


def normalize_question(raw: Dict[str, Any], number: int) -> Question:
    options_raw = raw.get("options")
    options = [safe_text(o) for o in options_raw] if isinstance(options_raw, list) else []
    if len(options) > MAX_OPTIONS:
        raise PaperValidationError(f"question {number} has {len(options)} options; at most {MAX_OPTIONS} are supported")
    answer = _as_index(raw.get("correctAnswerIndex"))
    if answer is not None:
        if answer < 0 or answer >= len(options):
            raise PaperValidationError(
                f"question {number}: correctAnswerIndex {answer} is out of range for {len(options)} options"
            )
    else:
        answer = 0
    return Question(
        questionText=safe_text(raw.get("questionText")),
        options=options,
        correctAnswerIndex=answer,
        explanation=safe_text(raw.get("explanation")),
    )


def normalize_paper(req: ExamPaperRequest) -> ExamPaper:
    questions = [normalize_question(q, idx + 1) for idx, q in enumerate(req.questions)]
    return ExamPaper(
        title=safe_text(req.title, DEFAULT_TITLE),
        subject=safe_text(req.subject, DEFAULT_SUBJECT),
        board=safe_text(req.board, DEFAULT_BOARD),
        timeAllowed=safe_text(req.timeAllowed, DEFAULT_TIME_ALLOWED),
        instructions=safe_text(req.instructions),
        passage=safe_text(req.passage),
        questions=questions,
    )


def safe_filename(title: str) -> str:
    stem = re.sub(r"[^a-z0-9]+", "-", title.lower())
    stem = stem.strip("-")[:80]
    return stem or DEFAULT_FILENAME
