from __future__ import annotations

import html
import re
from datetime import date
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from app.schemas.application import JobApplicationRecord
from app.schemas.resume import ResumeRecord

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
SZ_NAME = 20
SZ_CONTACT = 10
SZ_BODY = 11
SZ_BODY_MIN = 8
LEADING_RATIO = 1.35
MARGIN = 54
TOP_MARGIN = 60
BOTTOM_MARGIN = 54
PDF_DARK = colors.HexColor("#1a1a1a")
PDF_MUTED = colors.HexColor("#555555")

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_TAG_RE = re.compile(r"</?(?:p|div|br|li|h[1-6])[^>]*>", re.IGNORECASE)
_SIGN_OFF_RE = re.compile(r"\n*\s*Sincerely,[\s\S]*$")


def html_to_text(body: str) -> str:
    text = _BLOCK_TAG_RE.sub("\n", body or "")
    text = html.unescape(_TAG_RE.sub("", text))
    text = re.sub(r"[ \t]+\n", "\n", text)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def _strip_sign_off(body: str) -> str:
    return _SIGN_OFF_RE.sub("", body).rstrip()


def _wrap_paragraphs(text: str, size: float, width: float) -> list[str]:
    lines: list[str] = []
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        lines.extend(simpleSplit(paragraph, FONT_REGULAR, size, width))
    return lines


def _fit_body(text: str, width: float, available_height: float) -> tuple[list[str], float, float]:
    """Shrink the body font until it fits; at the minimum size, truncate the overflow."""
    size = float(SZ_BODY)
    while True:
        leading = size * LEADING_RATIO
        lines = _wrap_paragraphs(text, size, width)
        if len(lines) * leading <= available_height:
            return lines, size, leading
        if size <= SZ_BODY_MIN:
            max_lines = max(0, int(available_height // leading))
            return lines[:max_lines], size, leading
        size = max(float(SZ_BODY_MIN), size - 0.5)


def render_cover_letter_pdf(
    resume: ResumeRecord,
    application: JobApplicationRecord,
    *,
    today: date | None = None,
) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=LETTER)
    pdf.setTitle(f"{resume.name} - Cover Letter")
    W, H = LETTER
    max_w = W - 2 * MARGIN
    y = H - TOP_MARGIN

    pdf.setFillColor(PDF_DARK)
    pdf.setFont(FONT_BOLD, SZ_NAME)
    pdf.drawString(MARGIN, y, resume.name)
    y -= SZ_NAME * 0.9

    pdf.setFillColor(PDF_MUTED)
    pdf.setFont(FONT_REGULAR, SZ_CONTACT)
    pdf.drawString(MARGIN, y, f"{resume.email} | {resume.phone}")
    y -= SZ_CONTACT * 3

    pdf.setFillColor(PDF_DARK)
    pdf.drawString(MARGIN, y, (today or date.today()).strftime("%B %d, %Y"))
    y -= SZ_CONTACT * 2.5
    pdf.drawString(MARGIN, y, "Hiring Manager")
    y -= SZ_CONTACT * 1.4
    pdf.drawString(MARGIN, y, application.company)
    y -= SZ_CONTACT * 3

    # Room for "Sincerely," and the name below the body.
    closing_height = SZ_BODY * LEADING_RATIO * 3
    available = y - BOTTOM_MARGIN - closing_height
    body = _strip_sign_off(html_to_text(application.cover_letter_body))
    lines, size, leading = _fit_body(body, max_w, available)

    pdf.setFont(FONT_REGULAR, size)
    for line in lines:
        pdf.drawString(MARGIN, y, line)
        y -= leading

    y -= leading
    pdf.drawString(MARGIN, y, "Sincerely,")
    y -= leading * 1.5
    pdf.setFont(FONT_BOLD, size)
    pdf.drawString(MARGIN, y, resume.name)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def cover_letter_filename(name: str, company: str) -> str:
    def _slug(value: str) -> str:
        return re.sub(r"[^A-Za-z0-9_\-]", "", re.sub(r"\s+", "_", (value or "").strip()))

    parts = [_slug(name) or "Applicant", "Cover_Letter"]
    company_slug = _slug(company)
    if company_slug:
        parts.append(company_slug)
    return "_".join(parts) + ".pdf"
