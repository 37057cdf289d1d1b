from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from ..papers import (
    EXPECTED_SHAPE_MESSAGE,
    ExamPaper,
    ExamPaperRequest,
    PaperValidationError,
    normalize_paper,
    safe_filename,
)
from ..pdf_writer import render_exam_paper


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exam-papers", tags=["exam_papers"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def pdf_response(paper: ExamPaper) -> Response:
    # Rendering finishes before any byte is sent; a failure never yields a partial file
    rendered = render_exam_paper(paper)
    filename = f"{safe_filename(paper.title)}.pdf"
    logger.info(
        "generated paper %r: %d question(s), %d page(s), %d bytes",
        paper.title,
        len(paper.questions),
        rendered.page_count,
        len(rendered.data),
    )
    return Response(
        content=rendered.data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.post("/generate-pdf")
async def generate_pdf(request: Request):
    try:
        body = await request.json()
    except ValueError:
        return error_response(400, "Invalid JSON body")
    try:
        paper = normalize_paper(ExamPaperRequest.model_validate(body))
    except ValidationError:
        return error_response(400, EXPECTED_SHAPE_MESSAGE)
    except PaperValidationError as e:
        return error_response(400, str(e))
    return pdf_response(paper)
