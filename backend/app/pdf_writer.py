"""
Minimal single-document PDF encoder.

Places pre-wrapped Line rows onto fixed A4 pages and serializes the result
as a PDF 1.4 file with two standard Type1 fonts (Helvetica and
Helvetica-Bold), so no PDF library is needed.

Object layout:
    1           Catalog
    2           Pages
    3           Font /F1 (Helvetica)
    4           Font /F2 (Helvetica-Bold)
    5, 6, ...   (content stream, page) pair per page, in page order
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

from .paper_layout import DEFAULT_FONT_SIZE, Line, build_paper_lines
from .papers import ExamPaper


logger = logging.getLogger(__name__)


PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89
MARGIN_LEFT = 48
MARGIN_TOP = 56
MARGIN_BOTTOM = 56
LINE_GAP = 3

CATALOG_ID = 1
PAGES_ID = 2
FONT_ID = 3
BOLD_FONT_ID = 4
FIRST_PAGE_OBJECT_ID = 5

# Single-byte encoding matching /WinAnsiEncoding on both fonts
TEXT_ENCODING = "cp1252"

HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"


def escape_pdf_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _num(value: float) -> str:
    return f"{value:g}"


class PageLayoutState:
    """Cursor and operator buffers for one document being paginated."""

    def __init__(self) -> None:
        self.pages: List[List[str]] = []
        self.ops: List[str] = []
        self.y: float = PAGE_HEIGHT - MARGIN_TOP
        self._begin_text()

    def _begin_text(self) -> None:
        self.ops.append("BT")
        self.ops.append(f"/F1 {_num(DEFAULT_FONT_SIZE)} Tf")
        self.ops.append(f"{MARGIN_LEFT:.2f} {self.y:.2f} Td")

    def break_page(self) -> None:
        self.ops.append("ET")
        self.pages.append(self.ops)
        self.ops = []
        self.y = PAGE_HEIGHT - MARGIN_TOP
        self._begin_text()

    def place_line(self, line: Line) -> None:
        line_height = line.size + LINE_GAP
        if self.y - line_height < MARGIN_BOTTOM:
            self.break_page()
        font = "/F2" if line.bold else "/F1"
        self.ops.append(f"{font} {_num(line.size)} Tf")
        self.ops.append(f"({escape_pdf_string(line.text)}) Tj")
        self.ops.append(f"0 -{line_height:.2f} Td")
        self.y -= line_height

    def finish(self) -> List[List[str]]:
        self.ops.append("ET")
        self.pages.append(self.ops)
        self.ops = []
        return self.pages


def paginate(lines: Iterable[Line]) -> List[List[str]]:
    state = PageLayoutState()
    for line in lines:
        state.place_line(line)
    return state.finish()


class PdfWriter:
    """Append-only PDF byte buffer that records object offsets as it goes."""

    def __init__(self) -> None:
        self._buf = bytearray(HEADER)
        self._offsets: Dict[int, int] = {}
        self._open: Optional[int] = None

    def tell(self) -> int:
        return len(self._buf)

    @property
    def offsets(self) -> Dict[int, int]:
        return dict(self._offsets)

    def write(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("ascii")
        self._buf += data

    def begin_object(self, number: int) -> None:
        if self._open is not None:
            raise RuntimeError(f"object {self._open} is still open")
        if number in self._offsets:
            raise RuntimeError(f"object {number} already written")
        self._offsets[number] = self.tell()
        self._open = number
        self.write(f"{number} 0 obj\n")

    def end_object(self) -> None:
        if self._open is None:
            raise RuntimeError("no object is open")
        self.write("\nendobj\n")
        self._open = None

    def add_object(self, number: int, body: bytes | str) -> None:
        self.begin_object(number)
        self.write(body)
        self.end_object()

    def add_stream(self, number: int, content: bytes) -> None:
        self.begin_object(number)
        self.write(f"<< /Length {len(content)} >>\nstream\n")
        self.write(content)
        self.write("\nendstream")
        self.end_object()

    def write_xref_and_trailer(self, root: int) -> bytes:
        """Append the cross-reference table and trailer and return the file."""
        if self._open is not None:
            raise RuntimeError(f"object {self._open} is still open")
        size = len(self._offsets) + 1
        if sorted(self._offsets) != list(range(1, size)):
            raise RuntimeError("object numbers must be contiguous from 1")
        xref_start = self.tell()
        self.write(f"xref\n0 {size}\n")
        self.write("0000000000 65535 f \n")
        for number in range(1, size):
            self.write(f"{self._offsets[number]:010d} 00000 n \n")
        self.write(f"trailer\n<< /Size {size} /Root {root} 0 R >>\nstartxref\n{xref_start}\n%%EOF\n")
        return bytes(self._buf)


def _font_object(base_font: str) -> str:
    return f"<< /Type /Font /Subtype /Type1 /BaseFont /{base_font} /Encoding /WinAnsiEncoding >>"


def _page_object(content_id: int) -> str:
    return (
        "<<\n"
        "/Type /Page\n"
        f"/Parent {PAGES_ID} 0 R\n"
        f"/MediaBox [0 0 {PAGE_WIDTH:.2f} {PAGE_HEIGHT:.2f}]\n"
        f"/Resources << /Font << /F1 {FONT_ID} 0 R /F2 {BOLD_FONT_ID} 0 R >> >>\n"
        f"/Contents {content_id} 0 R\n"
        ">>"
    )


def encode_pages(pages: List[List[str]]) -> bytes:
    page_ids = [FIRST_PAGE_OBJECT_ID + 2 * i + 1 for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    writer = PdfWriter()
    writer.add_object(CATALOG_ID, f"<< /Type /Catalog /Pages {PAGES_ID} 0 R >>")
    writer.add_object(PAGES_ID, f"<< /Type /Pages /Kids [ {kids} ] /Count {len(page_ids)} >>")
    writer.add_object(FONT_ID, _font_object("Helvetica"))
    writer.add_object(BOLD_FONT_ID, _font_object("Helvetica-Bold"))
    for ops, page_id in zip(pages, page_ids):
        content_id = page_id - 1
        content = "\n".join(ops).encode(TEXT_ENCODING, errors="replace")
        writer.add_stream(content_id, content)
        writer.add_object(page_id, _page_object(content_id))
    return writer.write_xref_and_trailer(root=CATALOG_ID)


class RenderedPaper(NamedTuple):
    data: bytes
    page_count: int


def build_pdf_from_lines(lines: Iterable[Line]) -> bytes:
    pages = paginate(lines)
    data = encode_pages(pages)
    logger.debug("encoded %d page(s), %d bytes", len(pages), len(data))
    return data


def render_exam_paper(paper: ExamPaper) -> RenderedPaper:
    pages = paginate(build_paper_lines(paper))
    return RenderedPaper(data=encode_pages(pages), page_count=len(pages))
