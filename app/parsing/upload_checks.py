from __future__ import annotations

from io import BytesIO
from zipfile import ZipFile

from app.core.errors import UploadRejected

ALLOWED_EXTENSIONS = ("pdf", "doc", "docx", "txt")
SUSPICIOUS_NAME_PATTERNS = (".exe", ".bat", ".cmd", ".scr", ".pif", ".com")
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

PDF_MAGIC = b"%PDF-"
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def extension_from_filename(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
        return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)
    except Exception:
        return False


def is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return False
    sample = content[:4096]
    if b"\x00" in sample:
        return False
    try:
        sample.decode("utf-8")
        return True
    except UnicodeDecodeError:
        pass
    printable = 0
    for byte in sample:
        if byte in (9, 10, 13) or 32 <= byte <= 126:
            printable += 1
    return (printable / len(sample)) >= 0.75


def validate_upload_signature(*, filename: str, content: bytes) -> None:
    ext = extension_from_filename(filename)

    if ext == "pdf":
        if not content.startswith(PDF_MAGIC):
            raise UploadRejected("File signature does not match .pdf content.")
        return

    if ext == "doc":
        if not content.startswith(OLE_MAGIC):
            raise UploadRejected("File signature does not match .doc content.")
        return

    if ext == "docx":
        if not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",)):
            raise UploadRejected("File signature does not match .docx content.")
        return

    if ext == "txt":
        if not is_probably_text_payload(content):
            raise UploadRejected("File signature does not match .txt text content.")
        return


def check_resume_upload(
    filename: str | None,
    content: bytes,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> str:
    """Validate an uploaded resume and return its lower-cased extension."""
    name = (filename or "").strip()
    if not name:
        raise UploadRejected("Please select one file to upload.")

    lowered = name.lower()
    if any(pattern in lowered for pattern in SUSPICIOUS_NAME_PATTERNS):
        raise UploadRejected("File type not allowed for security reasons.", status_code=415)

    ext = extension_from_filename(name)
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadRejected(
            "File type not supported. Please use PDF, DOC, DOCX, or TXT files.",
            status_code=415,
        )

    if not content:
        raise UploadRejected("The uploaded file is empty.")

    if len(content) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadRejected(f"File size must be less than {limit_mb}MB.", status_code=413)

    validate_upload_signature(filename=name, content=content)
    return ext
