"""
Text layout for exam papers.

Turns an ExamPaper into the flat, ordered list of Line rows that the PDF
encoder places on pages. Widths are estimated in characters, not glyph
metrics, which is close enough for Helvetica at body sizes.
"""

from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, ConfigDict

from .papers import ExamPaper, safe_text


BRAND_LINE = "11 Plus Exam Papers"
BODY_WIDTH = 92
OPTION_WIDTH = 88
DEFAULT_FONT_SIZE = 11


class Line(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    size: float = DEFAULT_FONT_SIZE
    bold: bool = False


def title_case(text: str) -> str:
    # Upper-cases the first character of every word, leaves the rest alone
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def option_letter(index: int) -> str:
    return chr(65 + index)


def wrap_text(text: str, max_chars: int) -> List[str]:
    """Greedy word wrap.

    Each embedded newline starts a new paragraph; an empty paragraph yields a
    single empty line. Words longer than ``max_chars`` are never split.
    """
    out: List[str] = []
    for para in safe_text(text).split("\n"):
        words = para.split()
        if not words:
            out.append("")
            continue
        line = words[0]
        for word in words[1:]:
            if len(line) + 1 + len(word) <= max_chars:
                line += " " + word
            else:
                out.append(line)
                line = word
        out.append(line)
    return out


def _answer_letter(index: int, option_count: int) -> str:
    return option_letter(max(0, min(index, option_count - 1)))


def build_paper_lines(paper: ExamPaper) -> List[Line]:
    lines: List[Line] = []

    def add_wrapped(text: str, width: int, size: float) -> None:
        lines.extend(Line(text=t, size=size) for t in wrap_text(text, width))

    lines.append(Line(text=BRAND_LINE, size=16, bold=True))
    lines.append(Line(text=paper.title, size=18, bold=True))
    lines.append(Line(text=f"{title_case(paper.subject)} • {paper.board} Style", size=12))
    lines.append(Line(text=f"Time Allowed: {paper.timeAllowed}", size=11))
    lines.append(Line(text=f"Total Questions: {len(paper.questions)}", size=11))
    lines.append(Line())

    lines.append(Line(text="Instructions", size=12, bold=True))
    add_wrapped(paper.instructions, BODY_WIDTH, 10)
    lines.append(Line())
    lines.append(Line(text="—", size=10))
    lines.append(Line())

    if paper.passage:
        lines.append(Line(text="Reading Passage", size=12, bold=True))
        add_wrapped(paper.passage, BODY_WIDTH, 10)
        lines.append(Line())

    lines.append(Line(text="Questions", size=13, bold=True))
    lines.append(Line())

    for number, q in enumerate(paper.questions, start=1):
        add_wrapped(f"{number}. {q.questionText}", BODY_WIDTH, 11)
        for j, opt in enumerate(q.options):
            add_wrapped(f"   {option_letter(j)}. {opt}", OPTION_WIDTH, 10)
        lines.append(Line())

    lines.append(Line(text="Answer Key (Parents & Tutors)", size=13, bold=True))
    lines.append(Line())

    for number, q in enumerate(paper.questions, start=1):
        letter = _answer_letter(q.correctAnswerIndex, len(q.options))
        lines.append(Line(text=f"{number}. {letter}", size=11, bold=True))
        if q.explanation:
            add_wrapped(f"Explanation: {q.explanation}", BODY_WIDTH, 10)
        lines.append(Line())

    return lines
