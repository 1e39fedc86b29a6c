from __future__ import annotations

import hashlib
import logging
import re
from io import BytesIO
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from .models import SUPPORTED_SOURCE_TYPES, ParsedBlock, ParsedDoc

logger = logging.getLogger(__name__)

_DOC_TEXT_RUN_RE = re.compile(rb"[\x20-\x7e\t\r\n]{4,}")
_DOC_MIN_RUN_WORDS = 2


def _compute_doc_id(text: str, filename: str) -> str:
    seed = text if text.strip() else filename
    digest = hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()
    return digest[:16]


def _parse_txt(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    text = content.decode("utf-8", errors="replace")
    return text, [], []


def _parse_pdf(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        reader = PdfReader(BytesIO(content))
        text_parts: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                text_parts.append(page_text)
                blocks.append(ParsedBlock(page=index, text=page_text))
        if not text_parts:
            warnings.append("No extractable text found in PDF.")
        return "\n".join(text_parts), blocks, warnings
    except Exception as exc:
        logger.warning("pdf_parse_failed: %s", exc)
        warnings.append(f"PDF parsing failed: {exc}")
        return "", blocks, warnings


def _parse_docx(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        document = Document(BytesIO(content))
        paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
        for paragraph_text in paragraphs:
            blocks.append(ParsedBlock(page=None, text=paragraph_text))
        if not paragraphs:
            warnings.append("No extractable text found in DOCX.")
        return "\n".join(paragraphs), blocks, warnings
    except Exception as exc:
        logger.warning("docx_parse_failed: %s", exc)
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", blocks, warnings


def _parse_doc(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    # Legacy Word binaries keep body text as plain 8-bit runs between formatting records.
    runs: list[str] = []
    for match in _DOC_TEXT_RUN_RE.finditer(content):
        run = match.group(0).decode("ascii", errors="ignore").strip()
        if len(run.split()) >= _DOC_MIN_RUN_WORDS:
            runs.append(run)
    warnings = ["Legacy .doc text was extracted heuristically; review the parsed fields or upload a .docx."]
    if not runs:
        warnings.append("No extractable text found in DOC.")
    return "\n".join(runs), [], warnings


_PARSERS = {
    "txt": _parse_txt,
    "pdf": _parse_pdf,
    "docx": _parse_docx,
    "doc": _parse_doc,
}


def parse_document_bytes(filename: str, content: bytes) -> ParsedDoc:
    extension = Path(filename).suffix.lower().lstrip(".")
    parser = _PARSERS.get(extension)
    if parser is None:
        supported = ", ".join(f".{kind}" for kind in SUPPORTED_SOURCE_TYPES)
        raise NotImplementedError(f"Unsupported file type '.{extension}'. Supported types: {supported}")

    text, blocks, warnings = parser(content)
    return ParsedDoc(
        doc_id=_compute_doc_id(text=text, filename=filename),
        source_type=extension,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )


def parse_document(file_path: str) -> ParsedDoc:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input document not found: '{path}'")
    return parse_document_bytes(path.name, path.read_bytes())
