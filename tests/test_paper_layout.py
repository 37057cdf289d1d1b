from __future__ import annotations

from backend.app.paper_layout import (
    BODY_WIDTH,
    BRAND_LINE,
    Line,
    build_paper_lines,
    option_letter,
    title_case,
    wrap_text,
)
from backend.app.papers import ExamPaper, ExamPaperRequest, Question, normalize_paper


def _texts(lines):
    return [ln.text for ln in lines]


def test_wrap_greedy_packing() -> None:
    assert wrap_text("a bb ccc dddd", 6) == ["a bb", "ccc", "dddd"]
    assert wrap_text("a bb ccc", 8) == ["a bb ccc"]


def test_wrap_keeps_blank_paragraphs() -> None:
    assert wrap_text("one\n\ntwo", 10) == ["one", "", "two"]
    assert wrap_text("", 10) == [""]
    assert wrap_text("   \n", 10) == ["", ""]


def test_wrap_never_splits_long_words() -> None:
    assert wrap_text("supercalifragilistic x", 5) == ["supercalifragilistic", "x"]


def test_wrap_non_string_is_blank() -> None:
    assert wrap_text(None, 10) == [""]  # type: ignore[arg-type]


def test_wrap_is_idempotent_on_width() -> None:
    text = (
        "The quick brown fox jumps over the lazy dog while the farmer counts "
        "forty two sheep in the meadow beyond the old stone bridge.\n\nSecond paragraph here."
    )
    wrapped = wrap_text(text, 24)
    assert all(len(line) <= 24 for line in wrapped)
    rewrapped = [out for line in wrapped for out in wrap_text(line, 24)]
    assert rewrapped == wrapped


def test_title_case_and_letters() -> None:
    assert title_case("verbal reasoning") == "Verbal Reasoning"
    assert title_case("non-verbal") == "Non-Verbal"
    assert [option_letter(i) for i in range(4)] == ["A", "B", "C", "D"]


def test_sample_paper_lines(sample_body) -> None:
    paper = normalize_paper(ExamPaperRequest.model_validate(sample_body))
    lines = build_paper_lines(paper)
    texts = _texts(lines)

    assert texts[:6] == [
        BRAND_LINE,
        "Sample",
        "Maths • Standard Style",
        "Time Allowed: Not specified",
        "Total Questions: 1",
        "",
    ]
    assert lines[0].bold and lines[1].bold
    assert lines[1].size == 18
    assert "Reading Passage" not in texts
    assert texts.index("Instructions") < texts.index("Questions") < texts.index("Answer Key (Parents & Tutors)")

    assert "1. What is 2+2?" in texts
    for option in ("A. 3", "B. 4", "C. 5", "D. 6"):
        assert option in texts

    key = texts.index("Answer Key (Parents & Tutors)")
    answer = lines[texts.index("1. B", key)]
    assert answer.bold
    assert "Explanation: 2+2=4" in texts[key:]


def test_passage_section_only_when_present(sample_body) -> None:
    body = dict(sample_body, passage="Once upon a time.\n\nThe end.")
    texts = _texts(build_paper_lines(normalize_paper(ExamPaperRequest.model_validate(body))))
    start = texts.index("Reading Passage")
    assert texts[start + 1 : start + 4] == ["Once upon a time.", "", "The end."]
    assert start < texts.index("Questions")


def test_long_question_wraps_without_losing_words() -> None:
    words = [f"word{i}" for i in range(60)]
    paper = ExamPaper(
        title="T",
        subject="s",
        questions=[Question(questionText=" ".join(words), options=["yes", "no"])],
    )
    texts = _texts(build_paper_lines(paper))
    start = texts.index("Questions") + 2
    end = texts.index("A. yes")
    question_lines = texts[start:end]
    assert len(question_lines) > 1
    assert all(len(t) <= BODY_WIDTH for t in question_lines)
    assert " ".join(question_lines).split() == ["1."] + words


def test_answer_letter_is_clamped_to_options() -> None:
    paper = ExamPaper(
        title="T",
        subject="s",
        questions=[
            Question(questionText="high", options=["a", "b", "c", "d"], correctAnswerIndex=9),
            Question(questionText="low", options=["a", "b"], correctAnswerIndex=-3),
        ],
    )
    texts = _texts(build_paper_lines(paper))
    key = texts.index("Answer Key (Parents & Tutors)")
    assert "1. D" in texts[key:]
    assert "2. A" in texts[key:]


def test_explanation_omitted_when_empty() -> None:
    paper = ExamPaper(title="T", subject="s", questions=[Question(questionText="q", options=["a"])])
    texts = _texts(build_paper_lines(paper))
    assert not any(t.startswith("Explanation:") for t in texts)


def test_line_defaults() -> None:
    line = Line()
    assert line.text == ""
    assert line.size == 11
    assert line.bold is False
