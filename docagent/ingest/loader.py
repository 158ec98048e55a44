# Document text extraction. Single place for "bytes + content type -> text".
# Supports PDF, DOCX, XLSX/XLS and text/*; anything else is decoded as UTF-8.

import io
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS = "application/vnd.ms-excel"
OCTET_STREAM = "application/octet-stream"

_EXTENSION_TYPES = {
    ".pdf": PDF,
    ".docx": DOCX,
    ".xlsx": XLSX,
    ".xls": XLS,
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
}


def normalize_content_type(content_type: str | None, filename: str = "") -> str:
    """
    Lower-case media type without parameters. Missing or generic types are
    resolved from the filename extension when possible.
    """
    ctype = (content_type or "").split(";", 1)[0].strip().lower()
    if not ctype or ctype == OCTET_STREAM:
        ext = Path(filename).suffix.lower() if filename else ""
        return _EXTENSION_TYPES.get(ext, ctype or OCTET_STREAM)
    return ctype


def extract_text(raw: bytes, content_type: str | None, filename: str = "") -> str:
    """
    Convert raw document bytes to plain text according to the content type.
    Unknown types fall back to a lenient UTF-8 decode.
    """
    ctype = normalize_content_type(content_type, filename)
    logger.info("[loader:extract_text] name=%r content_type=%s bytes=%d", filename, ctype, len(raw))
    if ctype == PDF:
        return _read_pdf(raw)
    if ctype == DOCX:
        return _read_docx(raw)
    if ctype in (XLSX, XLS):
        return _read_excel(raw)
    return raw.decode("utf-8", errors="replace")


def _read_pdf(raw: bytes) -> str:
    from pypdf import PdfReader
    reader = PdfReader(io.BytesIO(raw))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _read_docx(raw: bytes) -> str:
    from docx import Document
    doc = Document(io.BytesIO(raw))
    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def _read_excel(raw: bytes) -> str:
    import pandas as pd
    df = pd.read_excel(io.BytesIO(raw), sheet_name=None, header=None)
    parts = []
    for sheet_df in df.values():
        parts.append(sheet_df.astype(str).to_csv(sep=" ", index=False, header=False))
    return "\n\n".join(parts)
