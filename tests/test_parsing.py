import sys
import tempfile
import unittest
from io import BytesIO
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from docx import Document  # noqa: E402

from app.core.errors import UploadRejected  # noqa: E402
from app.parsing.parse import parse_document, parse_document_bytes  # noqa: E402
from app.parsing.upload_checks import OLE_MAGIC, check_resume_upload, is_probably_text_payload  # noqa: E402


def _docx_bytes(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class ParsingFacadeTests(unittest.TestCase):
    def test_parse_txt_returns_stable_parsed_doc(self):
        content = "Jane Doe\n- Python, SQL\nAustin, TX"
        tmp_file = tempfile.NamedTemporaryFile("w", suffix=".txt", delete=False, encoding="utf-8")
        tmp_path = Path(tmp_file.name)
        try:
            tmp_file.write(content)
            tmp_file.close()

            parsed = parse_document(str(tmp_path))
            self.assertEqual(parsed.source_type, "txt")
            self.assertEqual(parsed.text, content)
            self.assertTrue(parsed.doc_id)
            self.assertEqual(parse_document(str(tmp_path)).doc_id, parsed.doc_id)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def test_parse_docx_paragraphs(self):
        parsed = parse_document_bytes("resume.docx", _docx_bytes("Jane Doe", "", "Senior Engineer at Acme"))

        self.assertEqual(parsed.source_type, "docx")
        self.assertEqual(parsed.text, "Jane Doe\nSenior Engineer at Acme")
        self.assertEqual(len(parsed.blocks), 2)
        self.assertEqual(parsed.parsing_warnings, [])
        self.assertEqual(parsed.source_label, "DOCX")
        self.assertEqual(parsed.page_count, 0)

    def test_parse_legacy_doc_keeps_text_runs(self):
        content = OLE_MAGIC + b"\x00\x01\x02Jane Doe Senior Engineer\x00\x03ab\x00\x04Austin, TX 78701\x00"
        parsed = parse_document_bytes("resume.doc", content)

        self.assertIn("Jane Doe Senior Engineer", parsed.text)
        self.assertIn("Austin, TX 78701", parsed.text)
        self.assertTrue(parsed.parsing_warnings)

    def test_broken_pdf_reports_a_warning(self):
        parsed = parse_document_bytes("resume.pdf", b"%PDF-1.4 not really a pdf")
        self.assertEqual(parsed.text, "")
        self.assertTrue(parsed.parsing_warnings)

    def test_unsupported_extension_raises(self):
        with self.assertRaises(NotImplementedError):
            parse_document_bytes("resume.rtf", b"{\\rtf1}")


class UploadCheckTests(unittest.TestCase):
    def _status(self, filename, content, **kwargs) -> int:
        with self.assertRaises(UploadRejected) as ctx:
            check_resume_upload(filename, content, **kwargs)
        return ctx.exception.status_code

    def test_accepts_supported_files(self):
        self.assertEqual(check_resume_upload("Resume.TXT", b"Jane Doe\nPython"), "txt")
        self.assertEqual(check_resume_upload("cv.pdf", b"%PDF-1.7\n..."), "pdf")
        self.assertEqual(check_resume_upload("cv.docx", _docx_bytes("Jane Doe")), "docx")
        self.assertEqual(check_resume_upload("cv.doc", OLE_MAGIC + b"rest"), "doc")

    def test_rejections_carry_status_codes(self):
        self.assertEqual(self._status("", b"x"), 400)
        self.assertEqual(self._status("resume.exe.pdf", b"%PDF-"), 415)
        self.assertEqual(self._status("resume.png", b"\x89PNG"), 415)
        self.assertEqual(self._status("resume.txt", b""), 400)
        self.assertEqual(self._status("resume.txt", b"a" * 2048, max_bytes=1024), 413)

    def test_signature_mismatch_is_rejected(self):
        self.assertEqual(self._status("resume.pdf", b"plain text"), 400)
        self.assertEqual(self._status("resume.docx", b"PK\x03\x04garbage"), 400)
        self.assertEqual(self._status("resume.txt", b"\x00\x01\x02binary"), 400)

    def test_text_detection(self):
        self.assertTrue(is_probably_text_payload("José".encode("utf-8")))
        self.assertTrue(is_probably_text_payload("José García resume".encode("latin-1")))
        self.assertFalse(is_probably_text_payload(b""))


if __name__ == "__main__":
    unittest.main()
